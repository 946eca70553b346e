import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------- Auctions ----------

class SellerSummary(CamelModel):
    name: Optional[str]
    image: Optional[str]


class AuctionListing(CamelModel):
    id: uuid.UUID
    title: str
    image_url: Optional[str]
    current_price: float
    starting_price: float
    end_time: datetime
    bids: int
    seller: SellerSummary
    condition: str
    grade: Optional[str]
    grader: Optional[str]


# ---------- Stock ----------

class StockItemCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    price: float = Field(..., ge=0, lt=1e10)
    stock_count: int = Field(..., ge=0, le=2**31 - 1)
    category: str = Field(..., min_length=1, max_length=100)
    condition: str = Field(..., min_length=1, max_length=50)
    images: list[str] = Field(default_factory=list)
    low_stock_threshold: Optional[int] = Field(None, ge=0, le=2**31 - 1)


class StockItemUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0, lt=1e10)
    stock_count: Optional[int] = Field(None, ge=0, le=2**31 - 1)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    condition: Optional[str] = Field(None, min_length=1, max_length=50)
    images: Optional[list[str]] = None
    low_stock_threshold: Optional[int] = Field(None, ge=0, le=2**31 - 1)


class StockItemResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    price: float
    stock_count: int
    category: str
    condition: str
    images: list[str]
    low_stock_threshold: Optional[int]
    low_stock: bool = False
    created_at: datetime
    updated_at: datetime


class StockListEnvelope(CamelModel):
    data: list[StockItemResponse]
    low_stock_count: int


class StockDeleteResponse(CamelModel):
    id: uuid.UUID
    deleted: bool


class BulkImportResponse(CamelModel):
    message: str
    count: int


# ---------- Verification ----------

class VerificationUserSummary(CamelModel):
    name: Optional[str]
    email: str


class VerificationDetails(CamelModel):
    document_authenticity: float = Field(..., ge=0, le=100)
    face_match: float = Field(..., ge=0, le=100)
    data_consistency: float = Field(..., ge=0, le=100)


class VerificationResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    document_type: str
    document_url: str
    selfie_url: Optional[str]
    additional_info: str
    status: Literal["PENDING", "APPROVED", "REJECTED"]
    verification_score: Optional[float] = None
    verification_details: Optional[VerificationDetails] = None
    created_at: datetime
    updated_at: datetime


class AdminVerificationResponse(VerificationResponse):
    user: VerificationUserSummary


class VerificationStatusUpdate(CamelModel):
    status: Literal["APPROVED", "REJECTED"]
    verification_score: Optional[float] = Field(None, ge=0, le=100)
    verification_details: Optional[VerificationDetails] = None


class VerificationCreate(CamelModel):
    document_type: str = Field(..., min_length=1, max_length=50)
    document_url: str = Field(..., min_length=1, max_length=1000)
    selfie_url: Optional[str] = Field(None, max_length=1000)
    additional_info: str = Field("", max_length=5000)


# ---------- Analytics ----------

class SalesPoint(CamelModel):
    date: str
    amount: float


class CategoryShare(CamelModel):
    name: str
    value: int


class TopSeller(CamelModel):
    name: str
    sales: float


class ActivityEntry(CamelModel):
    type: str
    description: str
    timestamp: datetime


class AnalyticsResponse(CamelModel):
    sales: list[SalesPoint]
    categories: list[CategoryShare]
    top_sellers: list[TopSeller]
    recent_activity: list[ActivityEntry]


# ---------- Errors ----------

class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorEnvelope(BaseModel):
    error: ErrorDetail
