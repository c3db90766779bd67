"""
Base64 image helpers for logos and drawn signatures.

Values arrive either as bare base64 or as ``data:image/...;base64,`` URLs.
A signature that is not a data URL is a typed name.
"""
import base64
import binascii
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError


def is_data_url(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("data:")


def decode_image(value: Optional[str]) -> Optional[bytes]:
    """
    Decode a base64 image (optionally a data URL).

    Returns None when ``value`` is not an image, e.g. a typed signature.
    """
    if not value:
        return None
    payload = value.split(",", 1)[1] if is_data_url(value) else value
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    try:
        with Image.open(BytesIO(raw)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        return None
    return raw


def check_image(value: Optional[str]) -> Optional[str]:
    """Pydantic validator: an empty value or a decodable image"""
    if value and decode_image(value) is None:
        raise ValueError("Must be a base64 encoded PNG or JPEG image")
    return value


def check_signature(value: Optional[str]) -> Optional[str]:
    """Pydantic validator: a typed name, or a data URL that decodes to an image"""
    if is_data_url(value) and decode_image(value) is None:
        raise ValueError("Signature image could not be decoded")
    return value
