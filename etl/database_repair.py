"""
================================================================================
BROKEN DATABASE REPAIR - LOADER, REPAIR PASSES & WRITER
================================================================================

Stateless building blocks of the repair pipeline. Every repair pass takes the
full list of product records, fixes one field in place and returns the same
list, so the passes can be chained in any context and tested in isolation.

Repair Flow:
    import_database → fix_names → fix_prices → fix_quantities → export_database
================================================================================
"""

import json
import logging
import math
import os
from typing import Any, Dict, List, Sequence, Tuple

logger = logging.getLogger('DatabaseRepair')

Record = Dict[str, Any]

# Pairs of (corrupted text, replacement). Space-prefixed pairs must come first,
# otherwise the bare pair would already have consumed their tail.
NAME_CORRECTIONS: List[Tuple[str, str]] = [
    (' æ', ' A'),
    (' ß', ' B'),
    (' ¢', ' C'),
    (' ø', ' O'),
    ('æ', 'a'),
    ('ß', 'b'),
    ('¢', 'c'),
    ('ø', 'o'),
]


# =============================================================================
# ERRORS
# =============================================================================

class DatabaseRepairError(Exception):
    """Base class for every failure reported by the repair pipeline."""
    name = "Repair Error"
    default_message = "The database could not be repaired."

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class FileError(DatabaseRepairError):
    """The file does not exist, cannot be accessed or has a compromised structure."""
    name = "File Error"
    default_message = "The file does not exist, cannot be opened, or has a compromised structure."


class ConfigError(DatabaseRepairError):
    name = "Config Error"
    default_message = "The configuration file cannot be read or is malformed."


class UnparsablePriceError(DatabaseRepairError):
    """A price value cannot be read as a finite number."""
    name = "Price Error"

    def __init__(self, record_id: Any, value: Any):
        self.record_id = record_id
        self.value = value
        super().__init__(f"Product {record_id!r} has an unparsable price: {value!r}")


class EmptyCategoryError(DatabaseRepairError):
    """Stock value was requested for a category with no products."""
    name = "Category Error"

    def __init__(self, category: Any):
        self.category = category
        super().__init__(f"Category {category!r} has no products")


class InvalidCategoryError(DatabaseRepairError):
    """A product has no category, or one that is not a text label."""
    name = "Category Error"

    def __init__(self, record_id: Any, value: Any):
        self.record_id = record_id
        self.value = value
        super().__init__(f"Product {record_id!r} has an invalid category: {value!r}")


class InvalidQuantityError(DatabaseRepairError):
    name = "Quantity Error"

    def __init__(self, record_id: Any, value: Any):
        self.record_id = record_id
        self.value = value
        super().__init__(f"Product {record_id!r} has a non-numeric quantity: {value!r}")


# =============================================================================
# DATABASE I/O
# =============================================================================

def _reject_constant(constant: str):
    raise ValueError(f"Invalid JSON constant: {constant}")


def import_database(database_file: str, encoding: str = 'utf-8') -> List[Record]:
    """
    Load the product records stored in a JSON file.

    Any failure to read or parse the file is reported as a single FileError,
    whatever the underlying cause (missing file, permissions, malformed JSON).
    """
    try:
        with open(database_file, 'r', encoding=encoding) as f:
            database = json.load(f, parse_constant=_reject_constant)
    except (OSError, ValueError) as e:
        logger.debug(f"Failed to import {database_file}: {e}")
        raise FileError() from e

    if not isinstance(database, list) or not all(isinstance(item, dict) for item in database):
        logger.debug(f"{database_file} is not a JSON array of objects")
        raise FileError()

    return database


def export_database(database_file: str, database: List[Record], indent: int = 2,
                    encoding: str = 'utf-8') -> None:
    """Write the records to a pretty-printed JSON file, replacing any existing one."""
    try:
        directory = os.path.dirname(database_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(database_file, 'w', encoding=encoding) as f:
            json.dump(database, f, indent=indent, ensure_ascii=False)
    except OSError as e:
        logger.debug(f"Failed to export {database_file}: {e}")
        raise FileError() from e


# =============================================================================
# REPAIR PASSES
# =============================================================================

def corrupted_characters(corrections: Sequence[Tuple[str, str]] = NAME_CORRECTIONS) -> set:
    """Characters considered corrupted by a substitution table."""
    return {broken.strip() for broken, _ in corrections if broken.strip()}


def name_needs_repair(record: Record, corrections: Sequence[Tuple[str, str]] = NAME_CORRECTIONS) -> bool:
    name = record.get('name')
    if not isinstance(name, str):
        return False
    return any(char in name for char in corrupted_characters(corrections))


def fix_names(database: List[Record],
              corrections: Sequence[Tuple[str, str]] = NAME_CORRECTIONS) -> List[Record]:
    """
    Replace the corrupted characters in every product name.

    A corrupted character at the start of a word (after a space) becomes the
    capitalized letter; anywhere else it becomes the lowercase letter.
    Replacements are literal and applied in table order.
    """
    for record in database:
        name = record.get('name')
        if not isinstance(name, str):
            continue
        for broken, fixed in corrections:
            name = name.replace(broken, fixed)
        record['name'] = name
    return database


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_price(value: Any, record_id: Any = None):
    """Read a price from its text form. Integral values come back as an int."""
    if is_number(value):
        if not math.isfinite(value):
            raise UnparsablePriceError(record_id, value)
        return value
    if not isinstance(value, str) or '_' in value:
        raise UnparsablePriceError(record_id, value)

    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        price = float(text)
    except ValueError:
        raise UnparsablePriceError(record_id, value) from None
    if not math.isfinite(price):
        raise UnparsablePriceError(record_id, value)
    return int(price) if price.is_integer() else price


def fix_prices(database: List[Record]) -> List[Record]:
    """Convert every price given as text into a number."""
    for record in database:
        price = record.get('price')
        if not is_number(price) or not math.isfinite(price):
            record['price'] = parse_price(price, record.get('id'))
    return database


def fix_quantities(database: List[Record]) -> List[Record]:
    """Add a zero quantity to every product that has none."""
    for record in database:
        if 'quantity' not in record:
            record['quantity'] = 0
    return database


def repair_database(database: List[Record],
                    corrections: Sequence[Tuple[str, str]] = NAME_CORRECTIONS) -> List[Record]:
    """Apply the three repair passes in their fixed order."""
    database = fix_names(database, corrections)
    database = fix_prices(database)
    database = fix_quantities(database)
    return database
