from fastapi import APIRouter, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from rig_splitter.config import get_settings
from rig_splitter.formats import fbx_available
from rig_splitter.models import SplitRequest, SplitResponse
from rig_splitter.services.splitting import SplitService

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, object]:
    """Liveness probe reporting which scene formats can be split."""
    return {
        "status": "ok",
        "scene_extension": get_settings().scene_extension,
        "fbx_sdk": fbx_available(),
    }


@router.post("/split", response_model=SplitResponse, status_code=status.HTTP_202_ACCEPTED)
async def split(request: SplitRequest) -> SplitResponse:
    """Split a multi-rig scene into one scene per skeleton."""
    service = SplitService()
    try:
        return await run_in_threadpool(service.split, request)
    except (FileNotFoundError, IsADirectoryError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
