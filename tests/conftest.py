import json

import pytest


@pytest.fixture
def broken_records():
    return [
        {"id": 2, "name": "cæbc", "category": "B", "price": "10", "quantity": 3},
        {"id": 1, "name": " ært", "category": "A", "price": 5},
        {"id": 3, "name": "ok", "category": "B", "price": "2.5"},
    ]


@pytest.fixture
def broken_file(tmp_path, broken_records):
    path = tmp_path / "broken-database.json"
    path.write_text(json.dumps(broken_records, ensure_ascii=False), encoding="utf-8")
    return path
