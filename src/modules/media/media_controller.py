# src/modules/media/media_controller.py
"""Serves patient images behind access-scoped links."""

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import FileResponse

from src.common.utils.errors import MediaAccessError
from src.common.utils.global_messages import GlobalMessages

from . import media_service as service

router = APIRouter(prefix="/clinic/{clinic_id}/admin", tags=["Media"])


@router.get("/images/{filename}")
async def serve_image(
    clinic_id: str,
    filename: str,
    token: str = Query(..., min_length=1)
):
    """Serve a clinic image. The link token is the only credential."""
    if not service.is_safe_filename(filename):
        raise HTTPException(status_code=400, detail="Invalid filename")

    try:
        service.verify_media_token(token, clinic_id, filename)
        path = service.resolve_image_path(clinic_id, filename)
    except MediaAccessError:
        raise HTTPException(status_code=403, detail=GlobalMessages.MEDIA_ACCESS_DENIED)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail=GlobalMessages.IMAGE_NOT_FOUND)

    return FileResponse(path)
