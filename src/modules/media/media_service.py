# src/modules/media/media_service.py
"""
Access-scoped image links.

Messages keep the raw storage location of an attachment. The dashboard only
ever receives a link carrying a short-lived token that is bound to one clinic
and one file, so a leaked link expires and cannot be replayed for other files.
"""

import functools
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional, Union
from urllib.parse import quote, urlencode
from uuid import UUID

import jwt

from src.common.config import settings
from src.common.utils.errors import MediaAccessError
from src.common.utils.global_functions import utcnow

logger = logging.getLogger(__name__)

MEDIA_SCOPE = "media"


def image_filename(file_path: str) -> str:
    """Storage paths may use either separator; only the final component is public."""
    return os.path.basename(file_path.replace("\\", "/"))


def create_media_token(
    clinic_id: Union[str, UUID],
    filename: str,
    expires_minutes: Optional[int] = None
) -> str:
    """
    Create a signed token granting read access to one clinic image.

    Args:
        clinic_id: Clinic owning the image.
        filename: Image file name (no directories).
        expires_minutes: Lifetime, defaults to settings.MEDIA_TOKEN_EXPIRATION_MINUTES.
    """
    minutes = settings.MEDIA_TOKEN_EXPIRATION_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": filename,
        "clinic_id": str(clinic_id),
        "scope": MEDIA_SCOPE,
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def sign_image_url(clinic_id: Union[str, UUID], file_path: str) -> str:
    """Build the dashboard link for a stored image."""
    filename = image_filename(file_path)
    token = create_media_token(clinic_id, filename)
    return f"/clinic/{clinic_id}/admin/images/{quote(filename)}?{urlencode({'token': token})}"


def image_signer(clinic_id: Union[str, UUID]) -> Callable[[str], str]:
    """Signer bound to the clinic of the current request."""
    return functools.partial(sign_image_url, clinic_id)


def verify_media_token(token: str, clinic_id: Union[str, UUID], filename: str) -> dict:
    """
    Check that a media token grants access to this clinic's file.

    Raises:
        MediaAccessError: bad signature, expired, or scoped to another resource.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise MediaAccessError("Media link has expired")
    except jwt.InvalidTokenError:
        raise MediaAccessError("Media link token is invalid")

    if (
        payload.get("scope") != MEDIA_SCOPE
        or payload.get("clinic_id") != str(clinic_id)
        or payload.get("sub") != filename
    ):
        logger.warning("Media token for %s/%s used on %s/%s",
                       payload.get("clinic_id"), payload.get("sub"), clinic_id, filename)
        raise MediaAccessError("Media link is scoped to another resource")
    return payload


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and filename not in (".", "..") and not any(
        sep in filename for sep in ("/", "\\")
    )


def resolve_image_path(clinic_id: Union[str, UUID], filename: str) -> Path:
    """
    Locate a clinic image on disk.

    Raises:
        MediaAccessError: the filename tries to leave the clinic directory.
        FileNotFoundError: no such image.
    """
    if not is_safe_filename(filename):
        raise MediaAccessError(f"Invalid filename: {filename!r}")

    clinic_dir = (Path(settings.MEDIA_ROOT) / str(clinic_id)).resolve()
    path = (clinic_dir / filename).resolve()
    if path.parent != clinic_dir:
        raise MediaAccessError(f"Invalid filename: {filename!r}")
    if not path.is_file():
        raise FileNotFoundError(str(path))
    return path
