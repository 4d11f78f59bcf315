# backend/teamauth/core/config.py

import base64
import binascii
from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


def decode_encryption_key(raw: str) -> bytes:
    """
    Accept either a 32-byte UTF-8 string or URL-safe base64 of 32 bytes.
    Anything else is rejected instead of being padded or truncated.
    """
    value = (raw or "").strip()
    as_bytes = value.encode("utf-8")
    if len(as_bytes) == 32:
        return as_bytes

    try:
        decoded = base64.urlsafe_b64decode(as_bytes)
    except (binascii.Error, ValueError):
        decoded = b""

    if len(decoded) != 32:
        raise ValueError("ENCRYPTION_KEY must be exactly 32 bytes (raw or base64-encoded)")
    return decoded


class Settings(BaseSettings):
    app_env: str = "dev"

    # database
    database_url: str = "sqlite:///./teamauth.db"

    # tokens (access and refresh use distinct secrets)
    access_token_secret: str = "dev-access-secret-change-me"
    refresh_token_secret: str = "dev-refresh-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # refresh cookie. "lax" covers a front end on the same site as the API
    # (e.g. app.example.com + api.example.com); other sites need "none" with COOKIE_SECURE
    cookie_secure: bool = True
    cookie_samesite: str = "lax"

    # API key encryption at rest
    encryption_key: str = "dev-only-encryption-key-32-bytes"
    api_key_providers: List[str] = ["openai", "anthropic", "gemini"]

    # front-end
    frontend_url: str = "http://localhost:5173"
    cors_origins: str = ""

    # SMTP
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = ""
    smtp_use_ssl: bool = True
    smtp_timeout: int = 10
    app_name: str = "TeamGPT"

    # Google OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:8000/api/auth/google/callback"
    google_timeout: int = 10

    # object storage (Cloudflare R2, S3 compatible)
    r2_endpoint: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket: str = "profile-pics"
    r2_region: str = "auto"
    r2_public_url: Optional[str] = None
    profile_pic_max_bytes: int = 5 * 1024 * 1024

    # logging
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("encryption_key")
    @classmethod
    def _check_encryption_key(cls, v: str) -> str:
        decode_encryption_key(v)
        return v

    @field_validator("cookie_samesite")
    @classmethod
    def _check_samesite(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("lax", "strict", "none"):
            raise ValueError("COOKIE_SAMESITE must be lax, strict or none")
        return v

    @model_validator(mode="after")
    def _samesite_none_needs_secure(self) -> "Settings":
        # browsers drop SameSite=None cookies that are not Secure
        if self.cookie_samesite == "none" and not self.cookie_secure:
            raise ValueError("COOKIE_SAMESITE=none requires COOKIE_SECURE=true")
        return self

    @field_validator("r2_public_url")
    @classmethod
    def _strip_public_url(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else None

    @property
    def allow_origins(self) -> List[str]:
        # Prefer a comma-separated allowlist in prod, fallback to FRONTEND_URL/local
        if self.cors_origins.strip():
            return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return list({self.frontend_url.strip(), "http://localhost:5173"})


settings = Settings()
