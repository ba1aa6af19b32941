"""Image attachment loading.

Validates uploaded image files and encodes them for the chat model.
"""

import base64
import logging

from pydantic import ValidationError

from delfin_chat.models.schemas import MAX_IMAGE_SIZE, ImageAttachment

logger = logging.getLogger(__name__)

IMAGE_MIME_PREFIX = "image/"


class ImageAttachmentError(Exception):
    """Raised when an uploaded file cannot be attached."""

    pass


def _validate_image_bytes(file_content: bytes, mime_type: str | None) -> None:
    """Validate upload content before encoding.

    Args:
        file_content: Raw bytes of the uploaded file.
        mime_type: MIME type reported by the browser.

    Raises:
        ImageAttachmentError: If validation fails.
    """
    if not file_content:
        raise ImageAttachmentError("Empty file provided")

    if not mime_type or not mime_type.startswith(IMAGE_MIME_PREFIX):
        raise ImageAttachmentError("Please select only image files")

    if len(file_content) > MAX_IMAGE_SIZE:
        size_mb = len(file_content) / (1024 * 1024)
        raise ImageAttachmentError(
            f"Image size ({size_mb:.1f}MB) exceeds maximum allowed (5MB)"
        )


def load_image(file_content: bytes, name: str, mime_type: str | None) -> ImageAttachment:
    """Build an ImageAttachment from uploaded bytes.

    Args:
        file_content: Raw bytes of the image.
        name: Original file name.
        mime_type: MIME type, must start with ``image/``.

    Returns:
        ImageAttachment with base64 data and a data URL preview.

    Raises:
        ImageAttachmentError: If the file is empty, not an image, or too large.
    """
    _validate_image_bytes(file_content, mime_type)

    encoded = base64.b64encode(file_content).decode("ascii")
    try:
        attachment = ImageAttachment(
            name=name,
            mime_type=mime_type,
            size_bytes=len(file_content),
            base64_data=encoded,
            preview_url=f"data:{mime_type};base64,{encoded}",
        )
    except ValidationError as e:
        raise ImageAttachmentError(f"Invalid image attachment: {e}") from e

    logger.info(f"Loaded image attachment: {name} ({len(file_content)} bytes)")
    return attachment
