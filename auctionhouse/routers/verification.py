from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auctionhouse import verification
from auctionhouse.auth import get_current_user, require_admin
from auctionhouse.database import get_db
from auctionhouse.models import User
from auctionhouse.schemas import (
    AdminVerificationResponse,
    ErrorEnvelope,
    VerificationCreate,
    VerificationResponse,
    VerificationStatusUpdate,
)

admin_router = APIRouter(
    prefix="/api/admin/verification",
    tags=["verification"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorEnvelope}},
)

router = APIRouter(
    prefix="/api/verification",
    tags=["verification"],
    responses={401: {"model": ErrorEnvelope}},
)


# ------------------------------------------------------------------
# Admin review
# ------------------------------------------------------------------
@admin_router.get("", response_model=list[AdminVerificationResponse])
def list_verification_requests(db: Session = Depends(get_db)):
    return [
        AdminVerificationResponse.model_validate(r)
        for r in verification.list_requests(db)
    ]


@admin_router.patch("/{request_id}", response_model=AdminVerificationResponse)
def review_verification_request(
    request_id: UUID,
    body: VerificationStatusUpdate,
    db: Session = Depends(get_db),
):
    scores = body.model_dump(
        include={"verification_score", "verification_details"}, exclude_none=True
    )
    req = verification.update_status(db, request_id, body.status, **scores)
    return AdminVerificationResponse.model_validate(req)


# ------------------------------------------------------------------
# Account owner
# ------------------------------------------------------------------
@router.get("", response_model=Optional[VerificationResponse])
def get_my_verification(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    req = verification.latest_for_user(db, user)
    if req is None:
        return None
    return VerificationResponse.model_validate(req)


@router.post("", response_model=VerificationResponse, status_code=201)
def submit_verification(
    body: VerificationCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    req = verification.submit_request(
        db,
        user,
        document_type=body.document_type,
        document_url=body.document_url,
        selfie_url=body.selfie_url,
        additional_info=body.additional_info,
    )
    return VerificationResponse.model_validate(req)
