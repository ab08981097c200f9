"""
Test configuration and fixtures for the InstaProperty API.
Provides store fixtures, an HTTP client wired to the test stores, and test data
factories.
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
_TEST_ROOT = tempfile.mkdtemp(prefix="instaproperty-tests-")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DOCUMENT_STORE_DIR", os.path.join(_TEST_ROOT, "documents"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

import io
import uuid
import pytest
from typing import Any, AsyncGenerator, Dict, Optional
from httpx import AsyncClient, ASGITransport
from PIL import Image as PILImage
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.documents import DocumentStore, get_document_store
from app.services.auth import CurrentUser
from app.services.mirror import PropertyMirrorService
from app.utils.file_utils import ObjectStorage, get_object_storage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
MEDIA_BASE_URL = "http://test/media"


@pytest.fixture
async def db_engine():
    """Fresh in-memory mirror database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def document_store(tmp_path) -> DocumentStore:
    return DocumentStore(str(tmp_path / "documents"))


@pytest.fixture
def object_storage(tmp_path) -> ObjectStorage:
    return ObjectStorage(base_dir=str(tmp_path / "uploads"), public_base_url=MEDIA_BASE_URL)


@pytest.fixture
def mirror_service(db_session: AsyncSession) -> PropertyMirrorService:
    return PropertyMirrorService(db_session)


@pytest.fixture
async def async_client(
    session_factory,
    document_store: DocumentStore,
    object_storage: ObjectStorage
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with every store replaced by its test instance."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_document_store] = lambda: document_store
    app.dependency_overrides[get_object_storage] = lambda: object_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for signing test users up through the API."""

    PASSWORD = "testpassword123"

    @staticmethod
    def create_signup_data(
        name: str = "Test User",
        email: Optional[str] = None,
        mobile: str = "9876543210",
        password: str = PASSWORD
    ) -> Dict[str, Any]:
        return {
            "name": name,
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "mobile": mobile,
            "password": password,
        }

    @staticmethod
    async def signup(client: AsyncClient, **overrides) -> Dict[str, Any]:
        """
        Sign a user up.

        Returns:
            The auth response body plus ready-made ``headers``
        """
        response = await client.post("/api/auth/signup", json=UserFactory.create_signup_data(**overrides))
        assert response.status_code == 201, response.text
        data = response.json()
        data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
        return data


class ListingFactory:
    """Factory for listing payloads."""

    @staticmethod
    def create_listing_data(**overrides) -> Dict[str, Any]:
        data = {
            "title": "2BHK near metro",
            "content": "Sunny flat with covered parking",
            "images": [],
            "city": "Pune",
            "area": "Kothrud",
            "locality": "Karve Nagar",
            "floor": 3,
            "propertyType": "apartment",
            "transactionType": "freeHold",
            "option": "sell",
            "price": 500000,
            "areaSqft": 950,
            "ownerName": "Asha Kulkarni",
            "contactNumber": "9876543210",
            "facingDirection": "east",
            "status": "readyToMove",
        }
        data.update(overrides)
        return data

    @staticmethod
    def create_mirror_data(property_id: str, user_id: str, **overrides) -> Dict[str, Any]:
        """Body for ``POST /api/properties/create``."""
        data = ListingFactory.create_listing_data(**overrides)
        data.pop("images")
        data["id"] = property_id
        data["userId"] = user_id
        return data

    @staticmethod
    async def create(client: AsyncClient, headers: Dict[str, str], **overrides) -> Dict[str, Any]:
        response = await client.post(
            "/api/listings", json=ListingFactory.create_listing_data(**overrides), headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()


class ImageFactory:
    """Factory for test image files."""

    @staticmethod
    def create_image_bytes(width: int = 200, height: int = 200, format: str = "JPEG") -> bytes:
        img = PILImage.new("RGB", (width, height), color="steelblue")
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        return buffer.getvalue()

    @staticmethod
    def create_upload(
        filename: str = "front.jpg",
        content_type: str = "image/jpeg",
        content: Optional[bytes] = None
    ):
        """A ``files`` tuple for httpx multipart uploads."""
        return ("files", (filename, content if content is not None else ImageFactory.create_image_bytes(), content_type))


def make_current_user(user_id: str = "user-1") -> CurrentUser:
    return CurrentUser(
        id=user_id,
        email=f"{user_id}@example.com",
        name="Test User",
        session_id="session-1"
    )
