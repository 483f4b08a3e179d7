from corpus_api.schemas.containers import BlobPermission, Container, StorageType
from corpus_api.schemas.errors import Error, ErrorCode
from corpus_api.schemas.user import UserInfo

__all__ = [
    "BlobPermission",
    "Container",
    "StorageType",
    "Error",
    "ErrorCode",
    "UserInfo",
]
