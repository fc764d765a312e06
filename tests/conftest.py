import base64
import io
import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Configure the environment before anything imports threaddate.database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_ENDPOINT", "https://storage.test")
os.environ.setdefault("STORAGE_ACCESS_KEY_ID", "test-key")
os.environ.setdefault("STORAGE_SECRET_ACCESS_KEY", "test-secret")
os.environ.setdefault("STORAGE_PUBLIC_BASE", "https://cdn.test/tag-images")
os.environ.setdefault("APP_BASE_URL", "http://app.test")
os.environ.setdefault("SITE_URL", "https://threaddate.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from botocore.exceptions import ClientError  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import threaddate.models  # noqa: E402,F401
from threaddate.database import Base, get_db  # noqa: E402
from threaddate.main import app  # noqa: E402
from threaddate.models.brand import Brand  # noqa: E402
from threaddate.models.profile import Profile  # noqa: E402
from threaddate.models.session import AuthSession  # noqa: E402
from threaddate.models.tag import Tag  # noqa: E402
from threaddate.models.user import User  # noqa: E402
from threaddate.services import page_cache, storage  # noqa: E402
from threaddate.services.passwords import hash_password  # noqa: E402
from threaddate.services.sessions import COOKIE_NAME  # noqa: E402
from threaddate.services.tokens import hash_token, new_token, utcnow  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

PASSWORD = "correct-horse-battery"


class FakeS3:
    """Stands in for the boto3 client returned by storage._client()."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_uploads = False

    def put_object(self, **kwargs):
        if self.fail_uploads:
            raise ClientError({"Error": {"Code": "503", "Message": "unavailable"}}, "PutObject")
        self.objects[kwargs["Key"]] = kwargs

    def delete_object(self, Bucket, Key):
        self.deleted.append(Key)
        self.objects.pop(Key, None)


def make_image_b64(fmt="PNG", size=(8, 8), data_url=False):
    buf = io.BytesIO()
    Image.new("RGB", size, (180, 40, 40)).save(buf, format=fmt)
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    if data_url:
        return f"data:image/{fmt.lower()};base64,{encoded}"
    return encoded


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    page_cache.clear()
    yield
    page_cache.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def s3(monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(storage, "_client", lambda: fake)
    return fake


@pytest.fixture
def make_user(db):
    def _make(email="ana@threaddate.app", *, role="user", username=None, verified=True, password=PASSWORD):
        user = User(email=email, password_hash=hash_password(password), is_email_verified=verified)
        db.add(user)
        db.flush()
        db.add(Profile(id=user.id, username=username, role=role))
        db.commit()
        return user

    return _make


@pytest.fixture
def login(db, client):
    """Give `client` a live session cookie for `user`."""

    def _login(user):
        raw = new_token()
        db.add(
            AuthSession(
                user_id=user.id,
                token_hash=hash_token(raw),
                expires_at=utcnow() + timedelta(days=1),
            )
        )
        db.commit()
        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, raw)
        return raw

    return _login


@pytest.fixture
def make_brand(db):
    def _make(name="Levi's", slug="levis", *, verified=False, status=None):
        brand = Brand(
            name=name,
            slug=slug,
            verified=verified,
            verification_status=status or ("verified" if verified else "pending"),
        )
        db.add(brand)
        db.commit()
        return brand

    return _make


@pytest.fixture
def make_tag(db):
    def _make(user, brand, *, era="1980s", category="Neck Tag", status="pending", **fields):
        fields.setdefault("image_url", "https://cdn.test/tag-images/x/1.png")
        fields.setdefault("verification_score", 0)
        tag = Tag(user_id=user.id, brand_id=brand.id, era=era, category=category, status=status, **fields)
        db.add(tag)
        db.commit()
        return tag

    return _make
