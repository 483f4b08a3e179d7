from fastapi import FastAPI

from corpus_api.api.routers import download as download_router
from corpus_api.api.routers import files as files_router
from corpus_api.core.config import get_settings
from corpus_api.core.logging_config import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    app = FastAPI(
        debug=settings.debug,
        title="Corpus Download API",
    )

    app.include_router(download_router.router)
    app.include_router(files_router.router)

    return app


app = create_app()
