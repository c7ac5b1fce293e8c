import json

import pytest

from etl.database_repair import (
    NAME_CORRECTIONS,
    FileError,
    UnparsablePriceError,
    corrupted_characters,
    export_database,
    fix_names,
    fix_prices,
    fix_quantities,
    import_database,
    repair_database,
)


def test_word_initial_characters_are_capitalized():
    records = [{"name": " æbc"}, {"name": "x ßig ¢at øwl"}]
    fix_names(records)
    assert records[0]["name"] == " Abc"
    assert records[1]["name"] == "x Big Cat Owl"


def test_mid_word_characters_are_lowercase():
    records = [{"name": "cæbc"}, {"name": "ræßi¢ø"}]
    fix_names(records)
    assert records[0]["name"] == "cabc"
    assert records[1]["name"] == "rabico"


def test_fix_names_leaves_no_corrupted_characters():
    records = [{"name": "Fogão 4 ßøcæs æutømætic ¢ønsul"}, {"name": "ææ øø ¢¢ ßß"}]
    fix_names(records)
    bad = corrupted_characters(NAME_CORRECTIONS)
    for record in records:
        assert not any(char in record["name"] for char in bad)
    assert records[0]["name"] == "Fogão 4 Bocas Automatic Consul"


def test_leading_character_without_space_is_lowercase():
    records = [{"name": "æbc"}]
    fix_names(records)
    assert records[0]["name"] == "abc"


def test_fix_names_mutates_in_place_and_skips_non_strings():
    records = [{"name": None}, {"id": 1}]
    assert fix_names(records) is records
    assert records == [{"name": None}, {"id": 1}]


def test_fix_names_custom_table():
    records = [{"name": "h#llo"}]
    fix_names(records, [("#", "e")])
    assert records[0]["name"] == "hello"


def test_fix_prices_converts_numeric_text():
    records = [{"id": 1, "price": "10"}, {"id": 2, "price": "2.5"}, {"id": 3, "price": " 7 "}]
    fix_prices(records)
    assert records[0]["price"] == 10 and isinstance(records[0]["price"], int)
    assert records[1]["price"] == 2.5
    assert records[2]["price"] == 7


def test_fix_prices_keeps_numbers_unchanged():
    records = [{"id": 1, "price": 5}, {"id": 2, "price": 3.75}]
    fix_prices(records)
    assert records == [{"id": 1, "price": 5}, {"id": 2, "price": 3.75}]
    assert isinstance(records[0]["price"], int)


@pytest.mark.parametrize("value", ["abc", "", "nan", "inf", None, True, [1]])
def test_fix_prices_rejects_unparsable_values(value):
    records = [{"id": 9, "price": value}]
    with pytest.raises(UnparsablePriceError) as excinfo:
        fix_prices(records)
    assert excinfo.value.record_id == 9
    assert excinfo.value.value == value


def test_fix_prices_rejects_missing_price():
    with pytest.raises(UnparsablePriceError):
        fix_prices([{"id": 4}])


def test_fix_quantities_defaults_only_missing():
    records = [{"id": 1}, {"id": 2, "quantity": 5}, {"id": 3, "quantity": "x"}]
    assert fix_quantities(records) is records
    assert [r["quantity"] for r in records] == [0, 5, "x"]


def test_repair_is_idempotent(broken_records):
    once = repair_database(broken_records)
    snapshot = json.loads(json.dumps(once))
    twice = repair_database(once)
    assert twice == snapshot


def test_repair_keeps_order_and_count(broken_records):
    repaired = repair_database(broken_records)
    assert [r["id"] for r in repaired] == [2, 1, 3]


def test_import_database_reads_records(broken_file):
    records = import_database(str(broken_file))
    assert len(records) == 3
    assert records[0]["name"] == "cæbc"


def test_import_database_missing_file(tmp_path):
    with pytest.raises(FileError) as excinfo:
        import_database(str(tmp_path / "missing.json"))
    assert excinfo.value.name == "File Error"
    assert str(excinfo.value) == FileError.default_message


@pytest.mark.parametrize("content", ["{not json", '{"id": 1}', "[1, 2]"])
def test_import_database_compromised_structure(tmp_path, content):
    path = tmp_path / "broken.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(FileError):
        import_database(str(path))


def test_export_database_pretty_prints(tmp_path):
    path = tmp_path / "out" / "saida.json"
    records = [{"id": 1, "name": "Pão", "price": 2.5, "quantity": 0}]
    export_database(str(path), records)
    text = path.read_text(encoding="utf-8")
    assert text == json.dumps(records, indent=2, ensure_ascii=False)
    assert '\n  {\n    "id": 1,' in text


def test_export_database_overwrites(tmp_path):
    path = tmp_path / "saida.json"
    path.write_text("old", encoding="utf-8")
    export_database(str(path), [])
    assert json.loads(path.read_text(encoding="utf-8")) == []


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_import_database_rejects_non_standard_constants(tmp_path, constant):
    path = tmp_path / "broken.json"
    path.write_text(f'[{{"id": 1, "name": "x", "category": "A", "price": {constant}}}]', encoding="utf-8")
    with pytest.raises(FileError):
        import_database(str(path))


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_fix_prices_rejects_non_finite_numbers(value):
    with pytest.raises(UnparsablePriceError):
        fix_prices([{"id": 1, "price": value}])


@pytest.mark.parametrize("text, expected", [("10.0", 10), ("1e3", 1000), ("-2", -2), ("0.5", 0.5)])
def test_fix_prices_integral_text_becomes_int(text, expected):
    records = [{"id": 1, "price": text}]
    fix_prices(records)
    assert records[0]["price"] == expected
    assert type(records[0]["price"]) is type(expected)


@pytest.mark.parametrize("text", ["1_000", "2_5.0"])
def test_fix_prices_rejects_underscores(text):
    with pytest.raises(UnparsablePriceError):
        fix_prices([{"id": 1, "price": text}])


def test_export_database_write_failure(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(FileError) as excinfo:
        export_database(str(blocker / "saida.json"), [{"id": 1}])
    assert excinfo.value.name == "File Error"
