import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["COOKIE_SECURE"] = "false"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key-32-bytes-ok!"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["R2_PUBLIC_URL"] = "https://cdn.example.test"
os.environ["API_KEY_PROVIDERS"] = '["openai", "anthropic"]'

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from teamauth.api.deps_auth import get_db, get_google_client, get_mailer, get_storage  # noqa: E402
from teamauth.core.config import settings  # noqa: E402
from teamauth.core.database import Base  # noqa: E402
from teamauth.core.exceptions import OAuthError  # noqa: E402
from teamauth.core.security import hash_password, issue_access_token  # noqa: E402
from teamauth.main import app  # noqa: E402
from teamauth.models.user import User  # noqa: E402
from teamauth.services.google_oauth import GoogleProfile  # noqa: E402
from teamauth.services.storage import ObjectStorage, StorageError  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "secret123"


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send_verification_email(self, to_email, code):
        self.sent.append(("verification", to_email, code))
        return True

    def send_welcome_email(self, to_email, name):
        self.sent.append(("welcome", to_email, name))
        return True

    def send_reset_password_email(self, to_email, reset_url):
        self.sent.append(("reset", to_email, reset_url))
        return True

    def send_password_reset_success_email(self, to_email):
        self.sent.append(("reset_success", to_email))
        return True

    def last(self, kind):
        return [m for m in self.sent if m[0] == kind][-1]


class FakeStorage(ObjectStorage):
    def __init__(self):
        super().__init__(settings)
        self.uploaded = []
        self.deleted = []
        self.fail_delete = False
        self.fail_upload = False

    def upload(self, data, filename, key_prefix, content_type=None):
        if self.fail_upload:
            raise StorageError("bucket unavailable")
        key = f"{key_prefix}/{len(self.uploaded)}-{filename}"
        self.uploaded.append((key, data, content_type))
        return f"{self.public_url}/{key}"

    def delete(self, key):
        if self.fail_delete:
            raise StorageError("bucket unavailable")
        self.deleted.append(key)


class FakeGoogle:
    configured = True

    def __init__(self):
        self.profile = GoogleProfile(
            google_id="g-123",
            email="gina@example.com",
            name="Gina Google",
            picture="https://lh3.googleusercontent.test/gina.png",
        )

    def authorization_url(self, state):
        return f"https://accounts.google.test/o/oauth2/v2/auth?state={state}"

    def fetch_profile(self, code):
        if code == "bad-code":
            raise OAuthError("google_auth_failed")
        return self.profile


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def client(db, mailer, storage, google):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_google_client] = lambda: google
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(
        email="alice@example.com",
        name="Alice",
        password=DEFAULT_PASSWORD,
        role="user",
        verified=True,
        created_at=None,
        **fields,
    ):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password) if password else None,
            role=role,
            is_verified=verified,
            created_at=created_at or datetime.utcnow(),
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {issue_access_token(user.id)}"}

    return _auth_headers
