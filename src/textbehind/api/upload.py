"""
Validation of uploaded background images.
"""

import logging
import mimetypes
from typing import Optional

from textbehind.constants import MAX_UPLOAD_BYTES
from textbehind.exceptions import InvalidUploadError

logger = logging.getLogger(__name__)


def guess_content_type(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    content_type, _ = mimetypes.guess_type(filename)
    return content_type


def validate_upload(
    data: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> str:
    """
    Check an upload before it enters the scene.

    The content type comes from ``content_type`` or is guessed from
    ``filename``; it must be an ``image/*`` type, and the payload must not
    exceed ``max_bytes``.

    :return: The content type.
    :raises InvalidUploadError: with a message suitable for the user.
    """
    content_type = content_type or guess_content_type(filename)
    if not content_type or not content_type.lower().startswith("image/"):
        logger.info("Rejected upload %r (%s)" % (filename, content_type))
        raise InvalidUploadError("Please upload an image file")
    if len(data) > max_bytes:
        logger.info("Rejected upload %r: %d bytes" % (filename, len(data)))
        raise InvalidUploadError(
            "File size must be less than %dMB" % (max_bytes // (1024 * 1024))
        )
    return content_type
