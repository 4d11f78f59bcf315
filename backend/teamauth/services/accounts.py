import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from teamauth.core.crypto import KeyCodec
from teamauth.core.exceptions import AppError, AuthError, NotFound, ServerError, ValidationError
from teamauth.core.security import hash_password, verify_password, verify_refresh_token
from teamauth.models.user import User
from teamauth.services.email import EmailSender
from teamauth.services.google_oauth import GoogleProfile
from teamauth.services.storage import ObjectStorage, StorageError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
VERIFICATION_TTL = timedelta(hours=24)
RESET_TTL = timedelta(hours=24)
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def touch_last_active(db: Session, user: User) -> None:
    user.last_active = datetime.utcnow()
    db.commit()


def _check_new_password(password: str, message: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(message)


def _verification_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def _unused_verification_code(db: Session) -> str:
    # a code identifies its account on verify, so no two pending codes may collide
    while True:
        code = _verification_code()
        taken = (
            db.query(User.id)
            .filter(
                User.verification_token == code,
                User.verification_token_expires_at > datetime.utcnow(),
            )
            .first()
        )
        if not taken:
            return code


# ---------- SIGNUP / VERIFY ----------

def signup(db: Session, mailer: EmailSender, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
    name = (name or "").strip()
    email = normalize_email(email)
    if not name or not email or not password:
        raise ValidationError("All fields are required")

    if find_by_email(db, email):
        raise ValidationError("User already exists")

    _check_new_password(password, "Password must be at least 6 characters long")

    code = _unused_verification_code(db)
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        is_verified=False,
        verification_token=code,
        verification_token_expires_at=datetime.utcnow() + VERIFICATION_TTL,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("New signup user_id=%s", user.id)

    mailer.send_verification_email(user.email, code)
    return user


def verify_email(db: Session, mailer: EmailSender, code: Optional[str]) -> User:
    code = (code or "").strip()
    if not code:
        raise ValidationError("Invalid or expired verification code")

    user = (
        db.query(User)
        .filter(
            User.verification_token == code,
            User.verification_token_expires_at > datetime.utcnow(),
        )
        .first()
    )
    if not user:
        raise ValidationError("Invalid or expired verification code")

    user.is_verified = True
    user.verification_token = None
    user.verification_token_expires_at = None
    db.commit()
    db.refresh(user)

    mailer.send_welcome_email(user.email, user.name)
    return user


# ---------- LOGIN ----------

def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> User:
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = find_by_email(db, email)
    # same message whichever check fails
    if not user or not verify_password(password, user.password_hash):
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    touch_last_active(db, user)
    return user


def complete_google_login(db: Session, profile: GoogleProfile) -> User:
    """Find or create the account behind a verified Google identity."""
    user = db.query(User).filter(User.google_id == profile.google_id).first()

    if not user:
        user = find_by_email(db, profile.email)
        if user:
            # link an existing credential account to Google
            user.google_id = profile.google_id
            user.is_verified = True
            if not user.profile_pic and profile.picture:
                user.profile_pic = profile.picture
        else:
            user = User(
                name=profile.name,
                email=profile.email,
                google_id=profile.google_id,
                password_hash=None,
                is_verified=True,
                profile_pic=profile.picture,
            )
            db.add(user)
            logger.info("Creating account from Google login")

    user.last_active = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user


# ---------- PASSWORD RESET ----------

def forget_password(db: Session, mailer: EmailSender, email: Optional[str], frontend_url: str) -> None:
    user = find_by_email(db, email)
    if not user:
        raise ValidationError("User not found")

    token = secrets.token_hex(32)
    user.reset_password_token = token
    user.reset_password_expires_at = datetime.utcnow() + RESET_TTL
    db.commit()

    mailer.send_reset_password_email(user.email, f"{frontend_url.rstrip('/')}/reset-password/{token}")


def reset_password(db: Session, mailer: EmailSender, token: str, password: Optional[str]) -> None:
    if not password:
        raise ValidationError("Password is required")

    user = (
        db.query(User)
        .filter(
            User.reset_password_token == token,
            User.reset_password_expires_at > datetime.utcnow(),
        )
        .first()
    )
    if not user:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(password)
    user.reset_password_token = None
    user.reset_password_expires_at = None
    db.commit()

    mailer.send_password_reset_success_email(user.email)


def change_password(db: Session, user: User, current_password: Optional[str], new_password: Optional[str]) -> None:
    if not current_password or not new_password:
        raise ValidationError("Please provide both current and new passwords.")
    _check_new_password(new_password, "New password must be at least 6 characters long.")

    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Incorrect current password.")

    user.password_hash = hash_password(new_password)
    db.commit()


# ---------- SESSION ----------

def refresh_session(db: Session, refresh_token: Optional[str]) -> User:
    if not refresh_token:
        raise AuthError("Refresh token not found")

    user_id = verify_refresh_token(refresh_token)
    try:
        user = db.get(User, user_id)
        if not user:
            raise AuthError("User not found for refresh token", clear_refresh_cookie=True)
        touch_last_active(db, user)
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Refresh token lookup failed")
        raise ServerError("Server error during token refresh", clear_refresh_cookie=True) from e
    return user


def set_inactive(db: Session, user: User) -> None:
    user.last_active = None
    db.commit()


# ---------- PROFILE ----------

def update_profile(db: Session, user: User, name: Optional[str], email: Optional[str]) -> User:
    name = (name or "").strip()
    email = normalize_email(email)
    if not name and not email:
        raise ValidationError("Please provide name or email to update.")

    if email and email != user.email:
        existing = find_by_email(db, email)
        if existing and existing.id != user.id:
            raise ValidationError("Email address already in use.")
        user.email = email

    if name:
        user.name = name

    db.commit()
    db.refresh(user)
    return user


def update_profile_picture(
    db: Session,
    storage: ObjectStorage,
    user: User,
    data: bytes,
    filename: str,
    content_type: Optional[str],
    max_bytes: int,
) -> User:
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Invalid file type. Please upload an image.")
    if not data:
        raise ValidationError("No image file provided.")
    if len(data) > max_bytes:
        raise ValidationError("Image is too large.")

    old_key = storage.key_for_url(user.profile_pic)

    try:
        url = storage.upload(data, filename, f"profile-pics/{user.id}", content_type)
    except StorageError as e:
        logger.exception("Profile picture upload failed for user_id=%s", user.id)
        raise ServerError("Server error updating profile picture.") from e

    # the old object goes only once the new one is stored
    if old_key:
        try:
            storage.delete(old_key)
        except StorageError:
            logger.warning("Failed to delete old profile picture %s, proceeding anyway", old_key, exc_info=True)

    user.profile_pic = url
    db.commit()
    db.refresh(user)
    return user


# ---------- API KEYS ----------

def save_api_keys(db: Session, codec: KeyCodec, user: User, api_keys: Optional[Dict[str, Optional[str]]]) -> None:
    if api_keys is None:
        raise ValidationError("No API keys provided")

    user.api_keys = {provider: codec.encrypt(value) for provider, value in api_keys.items() if value}
    db.commit()


def get_api_keys(codec: KeyCodec, user: User, providers: Iterable[str] = ()) -> Dict[str, str]:
    decrypted = {provider: "" for provider in providers}
    for provider, token in (user.api_keys or {}).items():
        # a corrupt entry only blanks that provider
        decrypted[provider] = codec.decrypt(token) if token else ""
    return decrypted
