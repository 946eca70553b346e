"""Request authentication against externally issued session tokens."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from auctionhouse.database import get_db
from auctionhouse.errors import AuthorizationError
from auctionhouse.models import User


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    token = _bearer_token(authorization)
    if token is None:
        raise AuthorizationError()
    user = db.query(User).filter(User.session_token == token).first()
    if user is None:
        raise AuthorizationError()
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError()
    return user
