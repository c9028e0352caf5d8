"""Helpers for self-describing ``data:`` URLs carrying image payloads."""

from __future__ import annotations

import base64
import binascii
import re

from ..jobs.job_errors import InvalidDataUrlError

_MIME_PATTERN = re.compile(r":(.*?);")

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def encode_data_url(payload: bytes, content_type: str) -> str:
    """Embed ``payload`` and its media type into a base64 data URL."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """Return ``(payload, content_type)`` decoded from ``data_url``."""
    header, sep, body = data_url.partition(",")
    if not sep:
        raise InvalidDataUrlError("Invalid data URL")
    match = _MIME_PATTERN.search(header)
    if not match:
        raise InvalidDataUrlError("Could not parse MIME type from data URL")
    try:
        payload = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataUrlError("Invalid data URL") from exc
    return payload, match.group(1)


def extension_for(content_type: str) -> str:
    return _EXTENSIONS.get(content_type, "bin")
