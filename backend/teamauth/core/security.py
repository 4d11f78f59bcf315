# backend/teamauth/core/security.py

from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Response
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from teamauth.core.config import settings
from teamauth.core.exceptions import AuthError, TokenExpiredError, TokenInvalidError

# bcrypt, cost factor 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

REFRESH_COOKIE_NAME = "refreshToken"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    # OAuth-only accounts have no hash at all
    if not hashed_password or not plain_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def _encode(user_id: Any, token_type: str, secret: str, expires_delta: timedelta) -> str:
    to_encode = {
        "sub": str(user_id),
        "type": token_type,
        "iat": datetime.utcnow(),
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def issue_access_token(user_id: Any, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        user_id,
        "access",
        settings.access_token_secret,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def issue_refresh_token(response: Response, user_id: Any, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a refresh token and hand it to the browser as an http-only cookie."""
    expires_delta = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    token = _encode(user_id, "refresh", settings.refresh_token_secret, expires_delta)
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=int(expires_delta.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )
    return token


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )


def _subject(payload: dict, token_type: str) -> int:
    if payload.get("type") != token_type:
        raise JWTError("wrong token type")
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise JWTError("missing subject") from e


def verify_refresh_token(token: str) -> int:
    """Return the user id carried by a refresh token."""
    try:
        payload = jwt.decode(token, settings.refresh_token_secret, algorithms=[settings.jwt_algorithm])
        return _subject(payload, "refresh")
    except ExpiredSignatureError as e:
        raise TokenExpiredError("Invalid or expired refresh token", clear_refresh_cookie=True) from e
    except JWTError as e:
        raise TokenInvalidError("Invalid or expired refresh token", clear_refresh_cookie=True) from e


def decode_access_token(token: str) -> int:
    try:
        payload = jwt.decode(token, settings.access_token_secret, algorithms=[settings.jwt_algorithm])
        return _subject(payload, "access")
    except JWTError as e:
        raise AuthError("Not authenticated") from e
