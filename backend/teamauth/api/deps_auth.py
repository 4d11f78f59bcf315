# backend/teamauth/api/deps_auth.py

from functools import lru_cache

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from teamauth.core.config import settings
from teamauth.core.crypto import KeyCodec
from teamauth.core.database import SessionLocal
from teamauth.core.exceptions import AuthError, Forbidden
from teamauth.core.security import decode_access_token
from teamauth.models.user import User
from teamauth.services.email import EmailSender
from teamauth.services.google_oauth import GoogleOAuthClient
from teamauth.services.storage import ObjectStorage

# Swagger "Authorize" posts to the JSON login route; bearer parsing is unaffected.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------- COLLABORATORS (overridden in tests) ----------

@lru_cache
def get_codec() -> KeyCodec:
    return KeyCodec.from_secret(settings.encryption_key)


@lru_cache
def get_mailer() -> EmailSender:
    return EmailSender(settings)


@lru_cache
def get_storage() -> ObjectStorage:
    return ObjectStorage(settings)


@lru_cache
def get_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(settings)


# ---------- AUTH DEPS ----------

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise AuthError("Not authenticated")

    user_id = decode_access_token(token)
    user = db.get(User, user_id)
    if not user:
        raise AuthError("Not authenticated")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Not authorized to access this resource")
    return user
