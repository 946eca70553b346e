"""Identity verification requests: user submission and admin review."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from auctionhouse.errors import ConflictError, NotFoundError, PersistenceError
from auctionhouse.logger import get_logger
from auctionhouse.models import User, VerificationRequest

logger = get_logger(__name__)

# PENDING is the only non-terminal state.
_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "PENDING": ("APPROVED", "REJECTED"),
    "APPROVED": (),
    "REJECTED": (),
}


def list_requests(db: Session) -> list[VerificationRequest]:
    return (
        db.query(VerificationRequest)
        .options(joinedload(VerificationRequest.user))
        .order_by(VerificationRequest.created_at.desc())
        .all()
    )


def get_request_or_404(db: Session, request_id: uuid.UUID) -> VerificationRequest:
    req = (
        db.query(VerificationRequest)
        .options(joinedload(VerificationRequest.user))
        .filter(VerificationRequest.id == request_id)
        .first()
    )
    if not req:
        raise NotFoundError(
            "VERIFICATION_NOT_FOUND",
            f"Verification request not found: {request_id}",
        )
    return req


def update_status(
    db: Session,
    request_id: uuid.UUID,
    status: str,
    *,
    verification_score: Optional[float] = None,
    verification_details: Optional[dict] = None,
) -> VerificationRequest:
    """Move a PENDING request to APPROVED or REJECTED.

    The status change and the owner's verified flag are committed together;
    the conditional UPDATE guarantees only one reviewer wins.

    Reviewer scores, when given, are stored in the same UPDATE; omitted
    scores leave the columns untouched.
    """
    scores: dict = {}
    if verification_score is not None:
        scores["verification_score"] = verification_score
    if verification_details is not None:
        scores["verification_details"] = verification_details

    req = get_request_or_404(db, request_id)
    if status not in _TRANSITIONS[req.status]:
        raise ConflictError(
            f"Verification request is already {req.status}: {request_id}"
        )

    try:
        rows_updated = db.execute(
            update(VerificationRequest)
            .where(VerificationRequest.id == request_id)
            .where(VerificationRequest.status == "PENDING")
            .values(status=status, **scores)
        ).rowcount
        if rows_updated == 0:
            db.rollback()
            raise ConflictError(
                f"Verification request was already reviewed: {request_id}"
            )

        if status == "APPROVED":
            db.execute(
                update(User)
                .where(User.id == req.user_id)
                .values(is_verified=True)
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating verification request %s", request_id)
        raise PersistenceError("Failed to update verification request")

    logger.info("Verification request %s marked %s", request_id, status)
    db.expire_all()
    return get_request_or_404(db, request_id)


def latest_for_user(db: Session, user: User) -> Optional[VerificationRequest]:
    return (
        db.query(VerificationRequest)
        .filter(VerificationRequest.user_id == user.id)
        .order_by(VerificationRequest.created_at.desc())
        .first()
    )


def submit_request(
    db: Session,
    user: User,
    *,
    document_type: str,
    document_url: str,
    selfie_url: Optional[str] = None,
    additional_info: str = "",
) -> VerificationRequest:
    if user.is_verified:
        raise ConflictError("Account is already verified")

    pending = (
        db.query(VerificationRequest.id)
        .filter(VerificationRequest.user_id == user.id)
        .filter(VerificationRequest.status == "PENDING")
        .first()
    )
    if pending is not None:
        raise ConflictError("A verification request is already pending")

    req = VerificationRequest(
        user_id=user.id,
        document_type=document_type,
        document_url=document_url,
        selfie_url=selfie_url,
        additional_info=additional_info,
    )
    db.add(req)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error submitting verification request")
        raise PersistenceError("Failed to submit verification request")

    db.refresh(req)
    logger.info("Verification request %s submitted by user %s", req.id, user.id)
    return req
