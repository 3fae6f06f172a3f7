from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from rig_splitter import __version__
from rig_splitter.api.v1 import router as v1_router
from rig_splitter.config import get_settings
from rig_splitter.errors import SceneImportError


async def _scene_import_failed(request: Request, exc: SceneImportError) -> JSONResponse:
    logger.warning("Rejected {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Split multi-character scenes into one scene per skeleton",
    )
    app.include_router(v1_router, prefix="/v1")
    app.add_exception_handler(SceneImportError, _scene_import_failed)
    return app


app = create_app()
