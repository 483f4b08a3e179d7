from typing import Any

from pydantic import BaseModel


class UserInfo(BaseModel):
    object_id: str | None = None
    tenant_id: str | None = None
    application_id: str | None = None
    upn: str | None = None
    identity_type: str | None = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "UserInfo":
        return cls(
            object_id=claims.get("oid") or claims.get("sub"),
            tenant_id=claims.get("tid"),
            application_id=claims.get("appid") or claims.get("azp"),
            upn=claims.get("upn") or claims.get("preferred_username"),
            identity_type=claims.get("idtyp"),
        )
