from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from fastapi.responses import FileResponse

from corpus_api.api.responses import not_ok
from corpus_api.core.security import TokenError
from corpus_api.schemas import Error, ErrorCode, StorageType
from corpus_api.services.storage import LocalStorageService, get_storage_service

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/local/{storage_type}/{container}/{filename:path}", name="serve_local_blob")
async def serve_local_blob(
    storage_type: StorageType,
    container: str,
    filename: str,
    request: Request,
    sig: str = Query(...),
) -> Response:
    storage = get_storage_service()
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    try:
        storage.verify_download(sig, storage_type, container, filename)
    except TokenError as exc:
        return not_ok(
            request,
            Error.create(ErrorCode.INVALID_PERMISSION, str(exc)),
            "local_download",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    try:
        path = storage.open_for_download(storage_type, container, filename)
    except (FileNotFoundError, ValueError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found") from None
    return FileResponse(path)
