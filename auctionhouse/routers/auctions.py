from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auctionhouse.database import get_db
from auctionhouse.listing_query import build_filter, execute_listing_query, resolve_sort
from auctionhouse.schemas import AuctionListing, ErrorEnvelope

router = APIRouter(prefix="/api/auctions", tags=["auctions"])


@router.get(
    "",
    response_model=list[AuctionListing],
    responses={400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}},
)
def list_auctions(
    sort: Optional[str] = None,
    category: list[str] = Query([]),
    condition: list[str] = Query([]),
    grader: list[str] = Query([]),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    db: Session = Depends(get_db),
):
    predicate = build_filter(
        category=category,
        condition=condition,
        grader=grader,
        min_price=min_price,
        max_price=max_price,
    )
    ordering = resolve_sort(sort)
    rows = execute_listing_query(db, predicate, ordering)
    return [AuctionListing.model_validate(r) for r in rows]
