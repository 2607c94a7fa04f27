"""Image Uploads — decode, validate and store base64 images for case studies and avatars.

Invariants:
    - Payload decoded before validation; size limit applies to decoded bytes
    - Keys follow core.upload_rules.build_storage_key with a random hex suffix
"""

import logging
import secrets

from app.core.errors import InvalidInputError, ErrorContext
from app.core.upload_rules import (
    build_storage_key, check_upload, decode_base64_payload,
)
from app.infrastructure.file_storage import LocalFileStorage, StoredObject

logger = logging.getLogger(__name__)

CASE_STUDY_PREFIX = "case-studies"
AVATAR_PREFIX = "avatars"


async def store_image(
    storage: LocalFileStorage,
    *,
    prefix: str,
    user_id: int,
    filename: str,
    content_type: str,
    base64_data: str,
    max_bytes: int,
) -> StoredObject:
    """Validate and persist an uploaded image; raises InvalidInputError on bad input."""
    context = ErrorContext(user_id=user_id)
    data = decode_base64_payload(base64_data)
    if data is None:
        raise InvalidInputError("Invalid base64 data", "base64_data", context)

    violation = check_upload(content_type, len(data), max_bytes)
    if violation:
        raise InvalidInputError(violation["message"], violation["field"], context)

    key = build_storage_key(prefix, user_id, filename, secrets.token_hex(4))
    stored = await storage.put(key, data)
    logger.info(
        f"Image stored: {stored.key} ({len(data)} bytes)",
        extra={"user_id": user_id},
    )
    return stored
