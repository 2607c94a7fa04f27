"""Upload Rules — validation and storage-key construction for uploaded images.

Invariants:
    - All functions are PURE: no IO, no async
    - Only image/* content types accepted; size limit checked on decoded bytes
    - Storage keys: <prefix>/<user_id>/<sanitized filename>-<suffix>; never contain '..'

Design Decisions:
    - Suffix passed in by the caller (random in production, fixed in tests)
    - Data URLs ("data:image/png;base64,...") accepted as well as bare base64
"""

import base64
import binascii
import re

_IMAGE_CONTENT_TYPE = re.compile(r"^image/[a-z0-9][a-z0-9.+-]*$")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """Keep the basename, replace unsafe characters, never empty."""
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:100] or "upload"


def decode_base64_payload(data: str) -> bytes | None:
    """Decode bare or data-URL base64. None when not valid base64."""
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None


def check_upload(content_type: str, size_bytes: int, max_bytes: int) -> dict | None:
    if not _IMAGE_CONTENT_TYPE.match(content_type.strip().lower()):
        return {
            "status": "error",
            "error_code": "UNSUPPORTED_FILE_TYPE",
            "field": "content_type",
            "message": f"Unsupported file type: {content_type}",
        }
    if size_bytes == 0:
        return {
            "status": "error",
            "error_code": "EMPTY_FILE",
            "field": "base64_data",
            "message": "Uploaded file is empty",
        }
    if size_bytes > max_bytes:
        return {
            "status": "error",
            "error_code": "FILE_TOO_LARGE",
            "field": "base64_data",
            "message": f"File too large (max {max_bytes} bytes)",
        }
    return None


def build_storage_key(prefix: str, user_id: int, filename: str, suffix: str) -> str:
    return f"{prefix}/{user_id}/{sanitize_filename(filename)}-{suffix}"
