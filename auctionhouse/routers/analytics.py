from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auctionhouse.analytics import query_analytics
from auctionhouse.database import get_db
from auctionhouse.schemas import AnalyticsResponse

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsResponse)
def get_analytics(db: Session = Depends(get_db)):
    return AnalyticsResponse.model_validate(query_analytics(db))
