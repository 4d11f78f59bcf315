from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from teamauth.core.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    # null for accounts that only ever signed in with Google
    password_hash = Column(String, nullable=True)
    google_id = Column(String, unique=True, index=True, nullable=True)

    # "user" | "admin"
    role = Column(String, nullable=False, default=ROLE_USER)
    department = Column(String, nullable=True)

    is_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String, nullable=True, index=True)
    verification_token_expires_at = Column(DateTime, nullable=True)

    reset_password_token = Column(String, nullable=True, index=True)
    reset_password_expires_at = Column(DateTime, nullable=True)

    profile_pic = Column(String, nullable=True)

    # provider name -> "hex(iv):hex(ciphertext)"
    api_keys = Column(JSON, nullable=True)

    last_active = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
