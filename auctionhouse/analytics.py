"""Sales analytics: 30-day sales, category mix, top sellers, recent activity."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from auctionhouse.models import Category, Listing, User

SALES_WINDOW_DAYS = 30
TOP_SELLERS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 10


def query_sales(db: Session, *, now: Optional[datetime] = None) -> list[dict]:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=SALES_WINDOW_DAYS)
    rows = (
        db.query(Listing.updated_at, Listing.current_price)
        .filter(Listing.status == "SOLD", Listing.updated_at >= since)
        .order_by(Listing.updated_at.asc())
        .all()
    )
    return [
        {"date": r.updated_at.date().isoformat(), "amount": float(r.current_price)}
        for r in rows
    ]


def query_categories(db: Session) -> list[dict]:
    rows = (
        db.query(Category.name, func.count(Listing.id).label("value"))
        .outerjoin(Listing, Listing.category_id == Category.id)
        .group_by(Category.id, Category.name)
        .order_by(Category.name)
        .all()
    )
    return [{"name": r.name, "value": int(r.value)} for r in rows]


def query_top_sellers(db: Session, *, limit: int = TOP_SELLERS_LIMIT) -> list[dict]:
    sold_total = func.coalesce(func.sum(case(
        (Listing.status == "SOLD", Listing.current_price),
        else_=0,
    )), 0)
    rows = (
        db.query(User.name, sold_total.label("sales"))
        .outerjoin(Listing, Listing.seller_id == User.id)
        .filter(User.role == "SELLER")
        .group_by(User.id, User.name)
        .order_by(sold_total.desc(), User.name)
        .limit(limit)
        .all()
    )
    return [{"name": r.name or "Anonymous", "sales": float(r.sales)} for r in rows]


def query_recent_activity(
    db: Session, *, limit: int = RECENT_ACTIVITY_LIMIT
) -> list[dict]:
    rows = (
        db.query(Listing.title, Listing.status, Listing.updated_at, User.name)
        .join(User, Listing.seller_id == User.id)
        .filter(Listing.status.in_(("SOLD", "ACTIVE")))
        .order_by(Listing.updated_at.desc())
        .limit(limit)
        .all()
    )
    activity: list[dict] = []
    for r in rows:
        verb = "sold" if r.status == "SOLD" else "listed"
        activity.append({
            "type": r.status,
            "description": f'{r.name} {verb} "{r.title}"',
            "timestamp": r.updated_at,
        })
    return activity


def query_analytics(db: Session) -> dict:
    return {
        "sales": query_sales(db),
        "categories": query_categories(db),
        "topSellers": query_top_sellers(db),
        "recentActivity": query_recent_activity(db),
    }
