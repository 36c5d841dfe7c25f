"""Data URL helpers: the wire format images travel in between browser and API.
"""
import base64
import binascii
import re
from typing import Tuple

from .models import ImagePayload

DATA_URL_PATTERN = re.compile(r"data:([A-Za-z+/-]+);base64,(.+)")


class InvalidImageFormat(ValueError):
    """Raised when a string is not a `data:<mime>;base64,<payload>` URL."""


def decode(data_url: str) -> ImagePayload:
    """Split a data URL into its declared mime type and base64 payload.

    The payload is returned untouched; turning it into bytes is left to
    whoever talks to the model.
    """
    if not isinstance(data_url, str):
        raise InvalidImageFormat("data_url_must_be_string")
    match = DATA_URL_PATTERN.fullmatch(data_url)
    if not match:
        raise InvalidImageFormat("invalid_data_url")
    return ImagePayload(mime_type=match.group(1), data=match.group(2))


def encode(mime_type: str, data: str) -> str:
    return f"data:{mime_type};base64,{data}"


def encode_bytes(mime_type: str, raw: bytes) -> str:
    return encode(mime_type, base64.b64encode(raw).decode("ascii"))


def payload_bytes(payload: ImagePayload) -> bytes:
    try:
        return base64.b64decode(payload.data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImageFormat("invalid_base64")


def decode_bytes(data_url: str) -> Tuple[str, bytes]:
    payload = decode(data_url)
    return payload.mime_type, payload_bytes(payload)
