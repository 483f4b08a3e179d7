import importlib
import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from corpus_api.api import auth as auth_module
from corpus_api.core.config import get_settings
from corpus_api.core.security import create_access_token
from corpus_api.schemas import BlobPermission, Container, StorageType
from corpus_api.services import storage as storage_service


class DummyStorage(storage_service.StorageService):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[Container, str, StorageType, BlobPermission, timedelta]] = []

    async def create_signed_url(
        self,
        container: Container,
        filename: str,
        storage_type: StorageType,
        permission: BlobPermission,
        expires_in: timedelta,
    ) -> str:
        self.calls.append((container, filename, storage_type, permission, expires_in))
        return f"https://example.com/{storage_type.value}/{container}/{filename}?n={len(self.calls)}"


@pytest.fixture(scope="session", autouse=True)
def configure_environment(tmp_path_factory):
    os.environ["DEBUG"] = "false"
    os.environ["JWT_SECRET_KEY"] = "test-secret"
    os.environ["JWT_AUDIENCE"] = "corpus-api-test"
    os.environ["ALLOWED_TENANTS"] = '["tenant-a"]'
    os.environ["AGENT_OBJECT_IDS"] = '["agent-1"]'
    os.environ["STORAGE_BACKEND"] = "s3"
    os.environ["S3_ACCESS_KEY"] = "test"
    os.environ["S3_SECRET_KEY"] = "test"
    os.environ["S3_REGION"] = "us-east-1"
    os.environ["S3_BUCKET_CORPUS"] = "test-corpus"
    os.environ["AZURE_CORPUS_ACCOUNT"] = "corpusaccount"
    os.environ["LOCAL_STORAGE_DIR"] = str(tmp_path_factory.mktemp("storage"))
    get_settings.cache_clear()
    auth_module.reset_authorizer()
    storage_service.reset_storage_service()


@pytest.fixture(autouse=True)
def storage(configure_environment):
    dummy = DummyStorage()
    storage_service._storage_service = dummy
    yield dummy
    storage_service.reset_storage_service()


@pytest.fixture(scope="session")
def app_instance(configure_environment):
    from corpus_api import main as app_module

    importlib.reload(app_module)
    return app_module.app


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def make_token():
    def _make_token(expires_delta: timedelta | None = None, **claims) -> str:
        subject = claims.pop("sub", "user-1")
        claims.setdefault("tid", "tenant-a")
        claims.setdefault("upn", "user@example.com")
        return create_access_token(subject, expires_delta=expires_delta, claims=claims)

    return _make_token


@pytest.fixture
def user_headers(make_token) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}
