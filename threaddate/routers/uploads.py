from __future__ import annotations

import re
import secrets
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.orm import Session

from threaddate.database import get_db
from threaddate.schemas.common import validation_message
from threaddate.schemas.upload import UploadDeleteIn, UploadIn
from threaddate.services import storage
from threaddate.services.authz import require_user
from threaddate.services.images import InvalidImage, decode_image

router = APIRouter(prefix="/uploads", tags=["uploads"])

FOLDER_RE = re.compile(r"^[a-z0-9_-]{1,40}$")


@router.post("")
def upload_image(payload: dict, req: Request, db: Session = Depends(get_db)):
    """Store one image under the caller's folder and hand back its public URL."""
    user = require_user(req, db, "You must be logged in to upload images")

    try:
        data = UploadIn.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e))

    folder = data.folder.strip().lower()
    if not FOLDER_RE.match(folder):
        raise HTTPException(status_code=400, detail="Invalid folder name")

    try:
        image = decode_image(data.image_base64)
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))

    key = f"{user.id}/{folder}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{image.extension}"
    try:
        url = storage.upload_bytes(data=image.data, key=key, content_type=image.content_type)
    except storage.STORAGE_ERRORS:
        logger.bind(key=key).exception("storage_upload_failed")
        raise HTTPException(status_code=502, detail="Failed to upload image")

    logger.bind(key=key).info("image_uploaded")
    return {"success": True, "url": url}


@router.delete("")
def delete_image(payload: dict, req: Request, db: Session = Depends(get_db)):
    user = require_user(req, db, "You must be logged in to delete images")

    try:
        data = UploadDeleteIn.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e))

    key = storage.key_from_public_url(data.url.strip())
    if key is None:
        raise HTTPException(status_code=400, detail="URL does not belong to this bucket")
    # users may only remove what they uploaded themselves
    if not key.startswith(f"{user.id}/"):
        raise HTTPException(status_code=403, detail="You can only delete your own images")

    try:
        storage.delete_object(key)
    except storage.STORAGE_ERRORS:
        logger.bind(key=key).exception("storage_delete_failed")
        raise HTTPException(status_code=502, detail="Failed to delete image")

    logger.bind(key=key).info("image_deleted")
    return {"success": True}
