import logging
from datetime import timedelta

from fastapi import APIRouter, Request, Response

from corpus_api.api.auth import get_authorizer
from corpus_api.api.responses import not_ok, redirect
from corpus_api.schemas import BlobPermission, Container, Error, ErrorCode, StorageType
from corpus_api.services.storage import (
    LOCAL_DOWNLOAD_PREFIX,
    StorageError,
    get_storage_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["download"])

DOWNLOAD_URL_TTL = timedelta(minutes=5)


def _resolve_local_url(request: Request, url: str) -> str:
    path, _, query = url.removeprefix(LOCAL_DOWNLOAD_PREFIX).partition("?")
    # Path segments are still percent-encoded here.
    storage_type, container, filename = path.split("/", 2)
    local_url = request.url_for(
        "serve_local_blob",
        storage_type=storage_type,
        container=container,
        filename=filename,
    )
    return f"{local_url}?{query}"


async def _get(request: Request) -> Response:
    query = request.query_params

    container = Container.try_parse(query.get("container"))
    if container is None:
        return not_ok(
            request,
            Error.create(
                ErrorCode.INVALID_REQUEST,
                "'container' query parameter must be provided and valid",
            ),
            "download",
        )

    filename = query.get("filename")
    if filename is None:
        return not_ok(
            request,
            Error.create(
                ErrorCode.INVALID_REQUEST,
                "'filename' query parameter must be provided",
            ),
            "download",
        )

    storage = get_storage_service()
    try:
        url = await storage.create_signed_url(
            container,
            filename,
            StorageType.CORPUS,
            BlobPermission.READ,
            DOWNLOAD_URL_TTL,
        )
    except StorageError:
        logger.exception("download: unable to sign %s/%s", container, filename)
        raise

    if url.startswith(LOCAL_DOWNLOAD_PREFIX):
        url = _resolve_local_url(request, url)
    return redirect(request, url)


@router.get("/Download", name="download")
async def download(request: Request) -> Response:
    return await get_authorizer().call_if_user(request, _get)
