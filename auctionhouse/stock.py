"""Stock item service: spreadsheet import/export, low-stock detection, CRUD.

Imported rows arrive already decoded from the spreadsheet as loosely typed
JSON objects. Every field is parsed into a tagged result and the whole batch
is rejected if any row fails; valid batches are written in one transaction.
"""

from __future__ import annotations

import math
import re
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterable, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auctionhouse.errors import (
    NotFoundError,
    PersistenceError,
    RowValidationError,
    ValidationError,
)
from auctionhouse.logger import get_logger
from auctionhouse.models import StockItem

if TYPE_CHECKING:
    from auctionhouse.schemas import StockItemCreate, StockItemUpdate

logger = get_logger(__name__)

DEFAULT_LOW_STOCK_THRESHOLD = 5

# Column bounds: Numeric(12, 2) and a 32-bit Integer
MAX_PRICE = Decimal("1e10")
MAX_COUNT = 2**31 - 1

DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# Spreadsheet column → model attribute
COLUMNS: dict[str, str] = {
    "Title": "title",
    "Description": "description",
    "Price": "price",
    "Stock Count": "stock_count",
    "Category": "category",
    "Condition": "condition",
    "Low Stock Threshold": "low_stock_threshold",
}


# ------------------------------------------------------------------
# Field parsing (parse-with-result, never raises)
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Parsed:
    value: Any


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[Parsed, ParseFailure]


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _to_decimal(raw: Any):
    """Decimal from a JSON number or a plain decimal string, else None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))
    if isinstance(raw, str) and DECIMAL_RE.fullmatch(raw.strip()):
        return Decimal(raw.strip())
    return None


def parse_decimal(raw: Any) -> ParseResult:
    """Non-negative price that fits the ``Numeric(12, 2)`` column, as float."""
    if _is_blank(raw):
        return ParseFailure("value is required")
    value = _to_decimal(raw)
    if value is None:
        return ParseFailure(f"not a number: {raw!r}")
    if not value.is_finite():
        return ParseFailure(f"not a finite number: {raw!r}")
    if value < 0:
        return ParseFailure(f"must not be negative: {raw!r}")
    if value >= MAX_PRICE:
        return ParseFailure(f"out of range: {raw!r}")
    price = float(value)
    if not math.isfinite(price):
        return ParseFailure(f"not a finite number: {raw!r}")
    return Parsed(price)


def parse_count(raw: Any) -> ParseResult:
    """Non-negative ``Integer``; integral floats (``3.0``) are accepted."""
    if _is_blank(raw):
        return ParseFailure("value is required")
    number = _to_decimal(raw)
    if number is None or not number.is_finite():
        return ParseFailure(f"not an integer: {raw!r}")
    if number < 0:
        return ParseFailure(f"must not be negative: {raw!r}")
    # adjusted() is the exponent of the leading digit; checked before int()
    if number.adjusted() >= 10 or number > MAX_COUNT:
        return ParseFailure(f"out of range: {raw!r}")
    if number != number.to_integral_value():
        return ParseFailure(f"not an integer: {raw!r}")
    return Parsed(int(number))


def parse_text(raw: Any, *, required: bool = True, default: str = "") -> ParseResult:
    if _is_blank(raw):
        return ParseFailure("value is required") if required else Parsed(default)
    if isinstance(raw, (dict, list, bool)):
        return ParseFailure(f"not text: {raw!r}")
    return Parsed(str(raw).strip())


def parse_threshold(raw: Any) -> ParseResult:
    """Absent or non-numeric thresholds fall back to the default.

    Negative or out-of-range numbers are still failures.
    """
    if _is_blank(raw):
        return Parsed(DEFAULT_LOW_STOCK_THRESHOLD)
    result = parse_count(raw)
    if isinstance(result, ParseFailure):
        if result.reason.startswith(("must not be negative", "out of range")):
            return result
        return Parsed(DEFAULT_LOW_STOCK_THRESHOLD)
    return result


_ROW_PARSERS = (
    ("Title", parse_text),
    ("Description", lambda raw: parse_text(raw, required=False)),
    ("Price", parse_decimal),
    ("Stock Count", parse_count),
    ("Category", parse_text),
    ("Condition", parse_text),
    ("Low Stock Threshold", parse_threshold),
)


def parse_row(index: int, row: Any) -> tuple[dict, list[dict]]:
    """Parse one spreadsheet row into StockItem kwargs plus any failures."""
    if not isinstance(row, dict):
        return {}, [{"row": index, "field": None, "reason": "row must be an object"}]

    values: dict = {}
    failures: list[dict] = []
    for column, parser in _ROW_PARSERS:
        result = parser(row.get(column))
        if isinstance(result, ParseFailure):
            failures.append({"row": index, "field": column, "reason": result.reason})
        else:
            values[COLUMNS[column]] = result.value

    if not failures:
        values["images"] = []
    return values, failures


def validate_rows(rows: Sequence[Any]) -> list[dict]:
    """Parse every row; raise RowValidationError naming all bad fields."""
    if not rows:
        raise ValidationError("Import contains no rows")

    parsed: list[dict] = []
    failures: list[dict] = []
    for index, row in enumerate(rows):
        values, row_failures = parse_row(index, row)
        failures.extend(row_failures)
        parsed.append(values)

    if failures:
        raise RowValidationError(failures)
    return parsed


def import_rows(db: Session, rows: Sequence[Any]) -> int:
    """Validate and insert a batch; all rows are persisted or none are."""
    validated = validate_rows(rows)

    entities = [StockItem(**values) for values in validated]
    try:
        db.add_all(entities)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error importing stock items")
        raise PersistenceError("Failed to import stock items")

    logger.info("Imported %d stock items", len(entities))
    return len(entities)


def export_rows(items: Iterable[StockItem]) -> list[dict]:
    """Rows keyed like the import columns; re-importable as-is."""
    return [
        {
            "Title": item.title,
            "Description": item.description,
            "Price": item.price,
            "Stock Count": item.stock_count,
            "Category": item.category,
            "Condition": item.condition,
            "Low Stock Threshold": effective_threshold(item),
        }
        for item in items
    ]


# ------------------------------------------------------------------
# Low-stock classification
# ------------------------------------------------------------------

def effective_threshold(item: StockItem) -> int:
    if item.low_stock_threshold is None:
        return DEFAULT_LOW_STOCK_THRESHOLD
    return item.low_stock_threshold


def is_low_stock(item: StockItem) -> bool:
    return item.stock_count <= effective_threshold(item)


def partition_low_stock(
    items: Iterable[StockItem],
) -> tuple[list[StockItem], list[StockItem]]:
    """Split items into (low, normal), keeping input order in each."""
    low: list[StockItem] = []
    normal: list[StockItem] = []
    for item in items:
        (low if is_low_stock(item) else normal).append(item)
    return low, normal


# ------------------------------------------------------------------
# CRUD
# ------------------------------------------------------------------

def list_items(db: Session) -> list[StockItem]:
    return db.query(StockItem).order_by(StockItem.created_at.desc()).all()


def get_item_or_404(db: Session, item_id: uuid.UUID) -> StockItem:
    item = db.query(StockItem).filter(StockItem.id == item_id).first()
    if not item:
        raise NotFoundError("STOCK_ITEM_NOT_FOUND", f"Stock item not found: {item_id}")
    return item


def create_item(db: Session, body: StockItemCreate) -> StockItem:
    item = StockItem(**body.model_dump())
    db.add(item)
    _commit(db, "Failed to create stock item")
    db.refresh(item)
    return item


def update_item(db: Session, item_id: uuid.UUID, body: StockItemUpdate) -> StockItem:
    item = get_item_or_404(db, item_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(item, key, value)
    _commit(db, "Failed to update stock item")
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: uuid.UUID) -> uuid.UUID:
    item = get_item_or_404(db, item_id)
    db.delete(item)
    _commit(db, "Failed to delete stock item")
    logger.info("Deleted stock item %s", item_id)
    return item_id


def _commit(db: Session, message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(message)
        raise PersistenceError(message)
