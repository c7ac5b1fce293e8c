"""
Validation reports over a repaired product database.

Both reports iterate the categories in alphabetical order:
    - the product listing (names grouped by category, sorted by id)
    - the total stock value (price * quantity) per category
"""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from etl.database_repair import (
    EmptyCategoryError,
    InvalidCategoryError,
    InvalidQuantityError,
    Record,
    UnparsablePriceError,
    is_number,
)

GREEN = "\033[0;32m"
RESET = "\033[0m"

LISTING_HEADER = "List of categorized and sorted products:"
STOCK_VALUE_HEADER = "Total inventory value by category:"


def _to_frame(database: List[Record]) -> pd.DataFrame:
    return pd.DataFrame(database, columns=['id', 'name', 'category', 'price', 'quantity'])


def _highlight(text: str, enabled: bool) -> str:
    return f"{GREEN}{text}{RESET}" if enabled else text


# =============================================================================
# CATEGORY EXTRACTION
# =============================================================================

def extract_categories(database: List[Record]) -> List[str]:
    """
    Distinct product categories, sorted alphabetically.

    Raises:
        InvalidCategoryError: a product has no category or a non-text one.
    """
    if not database:
        return []

    df = _to_frame(database)
    invalid = df[~df['category'].map(lambda c: isinstance(c, str))]
    if not invalid.empty:
        record_id, category = invalid[['id', 'category']].astype(object).iloc[0]
        raise InvalidCategoryError(record_id, category)
    return sorted(df['category'].unique().tolist())


# =============================================================================
# PRODUCT LISTING
# =============================================================================

def list_products(database: List[Record], categories: Sequence[str]) -> List[str]:
    """Product names grouped by category, each group sorted by ascending id."""
    if not database:
        return []

    df = _to_frame(database)
    products: List[str] = []
    for category in categories:
        group = df[df['category'] == category].sort_values('id', kind='stable')
        products.extend(group['name'].tolist())
    return products


def format_product_listing(products: Sequence[str], highlight: bool = True) -> str:
    lines = [_highlight(LISTING_HEADER, highlight)]
    lines.extend(str(name) for name in products)
    return "\n".join(lines)


# =============================================================================
# STOCK VALUE
# =============================================================================

def _is_finite_number(value) -> bool:
    return is_number(value) and bool(np.isfinite(value))


def _check_numeric(group: pd.DataFrame) -> None:
    # missing fields show up as NaN
    for record_id, price, quantity in group[['id', 'price', 'quantity']].itertuples(index=False):
        if not _is_finite_number(price):
            raise UnparsablePriceError(record_id, price)
        if not _is_finite_number(quantity):
            raise InvalidQuantityError(record_id, quantity)


def stock_value(database: List[Record], categories: Sequence[str]) -> Dict[str, float]:
    """
    Total stock value (price * quantity) of each category.

    Raises:
        EmptyCategoryError: a requested category has no products.
        UnparsablePriceError / InvalidQuantityError: a product of the category
            still holds a non-numeric price or quantity.
    """
    df = _to_frame(database) if database else None
    totals: Dict[str, float] = {}

    for category in categories:
        group = df[df['category'] == category] if df is not None else None
        if group is None or group.empty:
            raise EmptyCategoryError(category)

        # object dtype keeps the original Python values for the numeric check
        _check_numeric(group.astype(object))
        values = group['price'].astype(float) * group['quantity'].astype(float)
        totals[category] = float(np.sum(values.to_numpy()))

    return totals


def format_stock_value(totals: Dict[str, float], currency: str = "R$", highlight: bool = True) -> str:
    lines = [_highlight(STOCK_VALUE_HEADER, highlight)]
    for category, total in totals.items():
        lines.append(f"Category {category}: {currency}{total:.2f}")
    return "\n".join(lines)
