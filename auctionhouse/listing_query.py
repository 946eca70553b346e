"""Auction listing query: filter building, sort resolution, execution.

Filters are built as a small predicate tree that knows nothing about the
ORM; ``execute_listing_query`` translates it to SQLAlchemy at the boundary.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import and_, func, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auctionhouse.errors import PersistenceError, ValidationError
from auctionhouse.logger import get_logger
from auctionhouse.models import Bid, Listing, User

logger = get_logger(__name__)

PAGE_SIZE = 24

SORT_KEYS = ("ending-soon", "recently-listed", "price-asc", "price-desc", "most-bids")
DEFAULT_SORT = "ending-soon"

_PLAIN_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


# ------------------------------------------------------------------
# Predicate tree
# ------------------------------------------------------------------

@dataclass(frozen=True)
class MemberOf:
    field: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class PriceRange:
    """Inclusive range on current price; a None bound is unbounded."""

    minimum: Optional[Decimal] = None
    maximum: Optional[Decimal] = None


@dataclass(frozen=True)
class StatusIs:
    status: str


@dataclass(frozen=True)
class AllOf:
    clauses: tuple["Predicate", ...] = ()


Predicate = Union[MemberOf, PriceRange, StatusIs, AllOf]


# ------------------------------------------------------------------
# Filter builder
# ------------------------------------------------------------------

def _parse_bound(name: str, raw: Optional[str]) -> Optional[Decimal]:
    if raw is None or not raw.strip():
        return None
    if not _PLAIN_DECIMAL_RE.fullmatch(raw.strip()):
        raise ValidationError(f"{name} must be a decimal number: {raw!r}")
    return Decimal(raw.strip())


def _parse_category_id(raw: str) -> str:
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise ValidationError(f"category must be a category id: {raw!r}")


def validate_sort(sort: Optional[str]) -> Optional[str]:
    if sort is None:
        return None
    if sort not in SORT_KEYS:
        raise ValidationError(
            f"sort must be one of {', '.join(SORT_KEYS)}: {sort!r}"
        )
    return sort


def build_filter(
    *,
    category: Optional[list[str]] = None,
    condition: Optional[list[str]] = None,
    grader: Optional[list[str]] = None,
    min_price: Optional[str] = None,
    max_price: Optional[str] = None,
) -> AllOf:
    """Turn raw query parameters into an AND of optional leaf constraints.

    Empty member sets and absent bounds contribute nothing. No status
    constraint is added here.
    """
    clauses: list[Predicate] = []
    if category:
        category = [_parse_category_id(c) for c in category]
    for field, values in (
        ("category", category),
        ("condition", condition),
        ("grader", grader),
    ):
        if values:
            clauses.append(MemberOf(field, tuple(values)))

    minimum = _parse_bound("minPrice", min_price)
    maximum = _parse_bound("maxPrice", max_price)
    if minimum is not None or maximum is not None:
        clauses.append(PriceRange(minimum, maximum))

    return AllOf(tuple(clauses))


# ------------------------------------------------------------------
# Sort resolver
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Ordering:
    field: str
    descending: bool


_SORT_TABLE: dict[str, Ordering] = {
    "ending-soon":     Ordering("end_time", False),
    "recently-listed": Ordering("created_at", True),
    "price-asc":       Ordering("current_price", False),
    "price-desc":      Ordering("current_price", True),
    "most-bids":       Ordering("bid_count", True),
}


def resolve_sort(sort: Optional[str] = None) -> Ordering:
    """Map a sort key to its single ordering; None means ``ending-soon``.

    Equal keys keep whatever order the database returns.
    """
    return _SORT_TABLE[validate_sort(sort) or DEFAULT_SORT]


# ------------------------------------------------------------------
# Executor
# ------------------------------------------------------------------

_FILTER_COLUMNS = {
    "category": Listing.category_id,
    "condition": Listing.condition,
    "grader": Listing.grader,
    "status": Listing.status,
}


def to_sqlalchemy(predicate: Predicate):
    """Translate a predicate tree into a SQLAlchemy boolean expression."""
    if isinstance(predicate, AllOf):
        if not predicate.clauses:
            return true()
        return and_(*(to_sqlalchemy(c) for c in predicate.clauses))
    if isinstance(predicate, MemberOf):
        column = _FILTER_COLUMNS[predicate.field]
        values = list(predicate.values)
        if predicate.field == "category":
            values = [uuid.UUID(v) for v in values]
        return column.in_(values)
    if isinstance(predicate, PriceRange):
        conds = []
        if predicate.minimum is not None:
            conds.append(Listing.current_price >= float(predicate.minimum))
        if predicate.maximum is not None:
            conds.append(Listing.current_price <= float(predicate.maximum))
        return and_(*conds) if conds else true()
    if isinstance(predicate, StatusIs):
        return Listing.status == predicate.status
    raise TypeError(f"unsupported predicate: {predicate!r}")


def _bid_count_subquery():
    return (
        select(Bid.listing_id, func.count(Bid.id).label("bid_count"))
        .group_by(Bid.listing_id)
        .subquery()
    )


def execute_listing_query(
    db: Session,
    predicate: AllOf,
    ordering: Ordering,
) -> list[dict]:
    """Run one bounded read of ACTIVE listings and shape it for transport.

    Always returns page one, at most ``PAGE_SIZE`` entries.
    """
    where = AllOf(predicate.clauses + (StatusIs("ACTIVE"),))
    condition = to_sqlalchemy(where)

    bids = _bid_count_subquery()
    bid_count = func.coalesce(bids.c.bid_count, 0)

    if ordering.field == "bid_count":
        order_col = bid_count
    else:
        order_col = getattr(Listing, ordering.field)
    order_by = order_col.desc() if ordering.descending else order_col.asc()

    stmt = (
        select(Listing, User.name, User.image, bid_count.label("bid_count"))
        .join(User, Listing.seller_id == User.id)
        .outerjoin(bids, Listing.id == bids.c.listing_id)
        .where(condition)
        .order_by(order_by)
        .limit(PAGE_SIZE)
    )

    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError:
        logger.exception("Error fetching auctions")
        raise PersistenceError("Error fetching auctions")

    return [_shape(listing, name, image, count) for listing, name, image, count in rows]


def _shape(listing: Listing, seller_name, seller_image, bid_count) -> dict:
    images = listing.images or []
    return {
        "id": listing.id,
        "title": listing.title,
        "image_url": images[0] if images else None,
        "current_price": listing.current_price,
        "starting_price": listing.starting_price,
        "end_time": listing.end_time,
        "bids": int(bid_count),
        "seller": {"name": seller_name, "image": seller_image},
        "condition": listing.condition,
        "grade": listing.grade,
        "grader": listing.grader,
    }
