import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from bookstore.config import settings
from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)

# tokens are issued by the account service; this app only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a bearer token for ``data``. Used by tests and operator tooling."""
    claims = dict(data)
    claims["exp"] = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        logger.info(f"Rejected bearer token: {exc}")
        return None


def user_id_from_claims(claims: dict) -> Optional[int]:
    raw = claims.get("user_id") or claims.get("sub")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    claims = decode_access_token(token)
    if claims is None:
        raise _unauthorized("Could not validate credentials")

    user_id = user_id_from_claims(claims)
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    user = session.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    if not user.can_login:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    return user
