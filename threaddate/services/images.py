from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from threaddate.utils.constants import IMAGE_FORMATS, MAX_IMAGE_BYTES

DATA_URL_RE = re.compile(r"^data:([^;,]+);base64,", re.IGNORECASE)


class InvalidImage(ValueError):
    pass


@dataclass
class DecodedImage:
    data: bytes
    content_type: str
    extension: str


def decode_image(raw: str) -> DecodedImage:
    """
    Accept a bare base64 string or a data URL and return validated bytes.

    The declared mime type of a data URL is ignored; Pillow decides the real
    format, which must be JPEG, PNG or WebP.
    """
    value = (raw or "").strip()
    if not value:
        raise InvalidImage("Image is required")

    m = DATA_URL_RE.match(value)
    if m:
        value = value[m.end():]

    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImage("Invalid base64 image data")

    if not data:
        raise InvalidImage("Invalid base64 image data")
    if len(data) > MAX_IMAGE_BYTES:
        raise InvalidImage("Image must be less than 5MB")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = (img.format or "").upper()
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise InvalidImage("Image must be JPEG, PNG, or WebP")

    if fmt not in IMAGE_FORMATS:
        raise InvalidImage("Image must be JPEG, PNG, or WebP")

    content_type, ext = IMAGE_FORMATS[fmt]
    return DecodedImage(data=data, content_type=content_type, extension=ext)
