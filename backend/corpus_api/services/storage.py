import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Final
from urllib.parse import quote

import boto3
from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobSasPermissions, BlobServiceClient, generate_blob_sas
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from corpus_api.core.config import get_settings
from corpus_api.core.security import create_blob_token, verify_blob_token
from corpus_api.schemas import BlobPermission, Container, StorageType

logger = logging.getLogger(__name__)

LOCAL_DOWNLOAD_PREFIX: Final[str] = "local://download/"

# SAS start time is backdated so that clients with a slow clock can use the URL immediately.
SAS_CLOCK_SKEW: Final[timedelta] = timedelta(minutes=5)

_S3_OPERATIONS = {
    BlobPermission.READ: "get_object",
    BlobPermission.WRITE: "put_object",
    BlobPermission.DELETE: "delete_object",
}


class StorageError(Exception):
    """Raised when a signed URL cannot be produced."""


class StorageService:
    """Base class for backends that hand out signed blob URLs."""

    scheme: str = ""

    def __init__(self) -> None:
        self.settings = get_settings()

    async def create_signed_url(
        self,
        container: Container,
        filename: str,
        storage_type: StorageType,
        permission: BlobPermission,
        expires_in: timedelta,
    ) -> str:
        raise NotImplementedError


class S3StorageService(StorageService):
    """Default S3-compatible storage backend."""

    scheme: Final[str] = "s3"

    def __init__(self) -> None:
        super().__init__()
        session = boto3.session.Session()
        self.client = session.client(
            "s3",
            endpoint_url=str(self.settings.s3_endpoint) if self.settings.s3_endpoint else None,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
            config=Config(signature_version="s3v4"),
        )
        self.buckets = {
            StorageType.CORPUS: self.settings.s3_bucket_corpus,
            StorageType.CONFIG: self.settings.s3_bucket_config,
        }

    @staticmethod
    def object_key(container: Container, filename: str) -> str:
        return f"{container}/{filename}"

    async def create_signed_url(
        self,
        container: Container,
        filename: str,
        storage_type: StorageType,
        permission: BlobPermission,
        expires_in: timedelta,
    ) -> str:
        operation = _S3_OPERATIONS.get(permission)
        if operation is None:
            raise StorageError(f"Unsupported permission for S3 signed URL: {permission}")
        try:
            return self.client.generate_presigned_url(
                operation,
                Params={
                    "Bucket": self.buckets[storage_type],
                    "Key": self.object_key(container, filename),
                },
                ExpiresIn=int(expires_in.total_seconds()),
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Unable to sign {container}/{filename}") from exc


class AzureStorageService(StorageService):
    """Azure Blob Storage backend issuing SAS URLs."""

    scheme: Final[str] = "azure"

    def __init__(self) -> None:
        super().__init__()
        self.accounts = {
            StorageType.CORPUS: self.settings.azure_corpus_account,
            StorageType.CONFIG: self.settings.azure_config_account,
        }
        self._credential: DefaultAzureCredential | None = None
        self._clients: dict[str, BlobServiceClient] = {}

    def _account_for(self, storage_type: StorageType) -> str:
        account = self.accounts.get(storage_type)
        if not account:
            raise StorageError(f"No storage account configured for {storage_type.value}")
        return account

    def _account_url(self, account: str) -> str:
        return f"https://{account}.{self.settings.azure_blob_suffix}"

    def _service_client(self, account: str) -> BlobServiceClient:
        client = self._clients.get(account)
        if client is None:
            if self._credential is None:
                self._credential = DefaultAzureCredential()
            client = BlobServiceClient(self._account_url(account), credential=self._credential)
            self._clients[account] = client
        return client

    async def create_signed_url(
        self,
        container: Container,
        filename: str,
        storage_type: StorageType,
        permission: BlobPermission,
        expires_in: timedelta,
    ) -> str:
        account = self._account_for(storage_type)
        now = datetime.now(timezone.utc)
        start = now - SAS_CLOCK_SKEW
        expiry = now + expires_in
        sas_permission = BlobSasPermissions.from_string(permission.to_sas())

        if self.settings.azure_account_key:
            sas = generate_blob_sas(
                account_name=account,
                container_name=container,
                blob_name=filename,
                account_key=self.settings.azure_account_key,
                permission=sas_permission,
                expiry=expiry,
                start=start,
            )
        else:
            client = self._service_client(account)
            try:
                delegation_key = await asyncio.to_thread(
                    client.get_user_delegation_key, start, expiry
                )
            except AzureError as exc:
                raise StorageError(f"Unable to obtain user delegation key for {account}") from exc
            sas = generate_blob_sas(
                account_name=account,
                container_name=container,
                blob_name=filename,
                user_delegation_key=delegation_key,
                permission=sas_permission,
                expiry=expiry,
                start=start,
            )

        return f"{self._account_url(account)}/{container}/{quote(filename)}?{sas}"


class LocalStorageService(StorageService):
    """Local filesystem storage intended for development use."""

    scheme: Final[str] = "local"

    def __init__(self) -> None:
        super().__init__()
        self.base_path = Path(self.settings.local_storage_dir).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def resource_path(storage_type: StorageType, container: str, filename: str) -> str:
        return f"{storage_type.value}/{container}/{filename}"

    def _key_path(self, storage_type: StorageType, container: str, filename: str) -> Path:
        if Container.try_parse(container) is None:
            raise ValueError("Invalid container")
        root = self.base_path / storage_type.value / container
        candidate = root.joinpath(*Path(filename).parts).resolve()
        # Blobs must stay inside their own storage type and container.
        if not candidate.is_relative_to(root):
            raise ValueError("Invalid storage key")
        return candidate

    async def create_signed_url(
        self,
        container: Container,
        filename: str,
        storage_type: StorageType,
        permission: BlobPermission,
        expires_in: timedelta,
    ) -> str:
        resource = self.resource_path(storage_type, container, filename)
        # Returns a local scheme that routers translate into real URLs.
        token = create_blob_token(resource, permission.to_sas(), expires_in)
        return f"{LOCAL_DOWNLOAD_PREFIX}{quote(resource)}?sig={token}"

    def verify_download(
        self, sig: str, storage_type: StorageType, container: str, filename: str
    ) -> None:
        resource = self.resource_path(storage_type, container, filename)
        verify_blob_token(sig, resource, BlobPermission.READ.to_sas())

    def open_for_download(self, storage_type: StorageType, container: str, filename: str) -> Path:
        path = self._key_path(storage_type, container, filename)
        if not path.is_file():
            raise FileNotFoundError(filename)
        return path


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        settings = get_settings()
        if settings.storage_backend == "local":
            _storage_service = LocalStorageService()
        elif settings.storage_backend == "azure":
            _storage_service = AzureStorageService()
        else:
            _storage_service = S3StorageService()
        logger.info("Using %s storage backend", _storage_service.scheme)
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
