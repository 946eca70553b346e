from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from auctionhouse import stock
from auctionhouse.auth import require_admin
from auctionhouse.database import get_db
from auctionhouse.models import StockItem
from auctionhouse.schemas import (
    BulkImportResponse,
    ErrorEnvelope,
    StockDeleteResponse,
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
    StockListEnvelope,
)

router = APIRouter(
    prefix="/api/admin/stock",
    tags=["stock"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorEnvelope}},
)


def _to_response(item: StockItem) -> StockItemResponse:
    return StockItemResponse.model_validate(item).model_copy(
        update={"low_stock": stock.is_low_stock(item)}
    )


@router.get("", response_model=StockListEnvelope)
def list_stock(
    low_stock_only: bool = Query(False, alias="lowStockOnly"),
    db: Session = Depends(get_db),
):
    items = stock.list_items(db)
    low, _ = stock.partition_low_stock(items)
    shown = low if low_stock_only else items
    return StockListEnvelope(
        data=[_to_response(i) for i in shown],
        low_stock_count=len(low),
    )


@router.post("", response_model=StockItemResponse, status_code=201)
def create_stock_item(body: StockItemCreate, db: Session = Depends(get_db)):
    return _to_response(stock.create_item(db, body))


# ------------------------------------------------------------------
# Spreadsheet import / export
# ------------------------------------------------------------------
@router.post(
    "/bulk",
    response_model=BulkImportResponse,
    responses={400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}},
)
def bulk_import(
    rows: list[Any] = Body(...),
    db: Session = Depends(get_db),
):
    count = stock.import_rows(db, rows)
    return BulkImportResponse(
        message=f"Successfully imported {count} items",
        count=count,
    )


@router.get("/export", response_model=list[dict[str, Any]])
def export_stock(db: Session = Depends(get_db)):
    return stock.export_rows(stock.list_items(db))


@router.patch("/{item_id}", response_model=StockItemResponse)
def update_stock_item(
    item_id: UUID, body: StockItemUpdate, db: Session = Depends(get_db)
):
    return _to_response(stock.update_item(db, item_id, body))


@router.delete("/{item_id}", response_model=StockDeleteResponse)
def delete_stock_item(item_id: UUID, db: Session = Depends(get_db)):
    deleted_id = stock.delete_item(db, item_id)
    return StockDeleteResponse(id=deleted_id, deleted=True)
