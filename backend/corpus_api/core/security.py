from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from corpus_api.core.config import get_settings

BLOB_TOKEN_AUDIENCE = "blob"


class TokenError(Exception):
    """Raised when token validation fails."""


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    claims: dict[str, Any] | None = None,
    audience: str | None = None,
) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = dict(claims or {})
    to_encode.update(
        {
            "sub": str(subject),
            "exp": expire,
            "aud": audience or settings.jwt_audience,
        }
    )
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str, audience: str | None = None) -> dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=audience or settings.jwt_audience,
        )
    except JWTError as exc:
        raise TokenError("Invalid token") from exc


def create_blob_token(resource: str, permissions: str, expires_delta: timedelta) -> str:
    """Sign a capability for ``resource`` usable without a bearer token."""
    return create_access_token(
        resource,
        expires_delta=expires_delta,
        claims={"sp": permissions},
        audience=BLOB_TOKEN_AUDIENCE,
    )


def verify_blob_token(token: str, resource: str, permission: str) -> None:
    payload = decode_access_token(token, audience=BLOB_TOKEN_AUDIENCE)
    if payload.get("sub") != resource:
        raise TokenError("Token does not grant access to this resource")
    if permission not in payload.get("sp", ""):
        raise TokenError("Token does not grant this permission")
