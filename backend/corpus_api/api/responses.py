import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from corpus_api.schemas import Error

logger = logging.getLogger(__name__)


def not_ok(
    request: Request,
    error: Error,
    context: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    logger.warning(
        "request error: %s: %s (%s %s)",
        context,
        error,
        request.method,
        request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json"),
        headers=headers,
    )


def redirect(request: Request, url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
