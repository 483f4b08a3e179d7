from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    debug: bool = Field(default=True, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    jwt_secret_key: str = Field(
        default="secret-key-change-me",
        alias="JWT_SECRET_KEY",
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str = Field(default="corpus-api", alias="JWT_AUDIENCE")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # JSON lists, e.g. ALLOWED_TENANTS='["tenant-a"]'
    allowed_tenants: list[str] = Field(default_factory=list, alias="ALLOWED_TENANTS")
    agent_object_ids: list[str] = Field(default_factory=list, alias="AGENT_OBJECT_IDS")

    storage_backend: Literal["s3", "azure", "local"] = Field(default="s3", alias="STORAGE_BACKEND")

    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_access_key: str = Field(default="change-me", alias="S3_ACCESS_KEY")
    s3_secret_key: str = Field(default="change-me", alias="S3_SECRET_KEY")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_bucket_corpus: str = Field(default="corpus", alias="S3_BUCKET_CORPUS")
    s3_bucket_config: str = Field(default="config", alias="S3_BUCKET_CONFIG")

    azure_corpus_account: str | None = Field(default=None, alias="AZURE_CORPUS_ACCOUNT")
    azure_config_account: str | None = Field(default=None, alias="AZURE_CONFIG_ACCOUNT")
    azure_account_key: str | None = Field(default=None, alias="AZURE_ACCOUNT_KEY")
    azure_blob_suffix: str = Field(default="blob.core.windows.net", alias="AZURE_BLOB_SUFFIX")

    local_storage_dir: str = Field(default="./storage", alias="LOCAL_STORAGE_DIR")


@lru_cache
def get_settings() -> Settings:
    return Settings()
