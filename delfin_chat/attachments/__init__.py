"""Image attachment handling for user messages.

Validates type and size, then encodes the bytes to base64 with a data URL
for previews, ready to be sent inline to the model.
"""

from delfin_chat.attachments.images import ImageAttachmentError, load_image

__all__ = ["ImageAttachmentError", "load_image"]
