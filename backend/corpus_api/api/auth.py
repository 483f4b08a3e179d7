import logging
from typing import Awaitable, Callable

from fastapi import Request, Response, status

from corpus_api.api.responses import not_ok
from corpus_api.core.config import Settings, get_settings
from corpus_api.core.security import TokenError, decode_access_token
from corpus_api.schemas import Error, ErrorCode, UserInfo

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


class Authorizer:
    """Runs endpoint handlers only for callers holding an acceptable bearer token."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def _unauthorized(self, request: Request, message: str) -> Response:
        return not_ok(
            request,
            Error.create(ErrorCode.UNAUTHORIZED, message),
            "authorization",
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    def is_agent(self, user: UserInfo) -> bool:
        if user.identity_type == "app":
            return True
        return user.object_id is not None and user.object_id in self.settings.agent_object_ids

    async def call_if(
        self,
        request: Request,
        handler: Handler,
        *,
        allow_user: bool,
        allow_agent: bool,
    ) -> Response:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            return self._unauthorized(request, "missing bearer token")

        try:
            claims = decode_access_token(token.strip())
        except TokenError:
            return self._unauthorized(request, "invalid token")

        user = UserInfo.from_claims(claims)
        allowed_tenants = self.settings.allowed_tenants
        if allowed_tenants and user.tenant_id not in allowed_tenants:
            return self._unauthorized(request, "unauthorized tenant")

        allowed = allow_agent if self.is_agent(user) else allow_user
        if not allowed:
            logger.info("rejecting caller %s for %s", user.object_id, request.url.path)
            return self._unauthorized(request, "unauthorized caller")

        request.state.user = user
        return await handler(request)

    async def call_if_user(self, request: Request, handler: Handler) -> Response:
        return await self.call_if(request, handler, allow_user=True, allow_agent=False)


_authorizer: Authorizer | None = None


def get_authorizer() -> Authorizer:
    global _authorizer
    if _authorizer is None:
        _authorizer = Authorizer()
    return _authorizer


def reset_authorizer() -> None:
    global _authorizer
    _authorizer = None
