import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

from blogapi.core.config import settings
from blogapi.core.exceptions import InvalidParameterError
from blogapi.core.logging import LogContext
from blogapi.models.db_models import Attachments, Users
from blogapi.repositories.attachment_repository import AttachmentRepository

logger = LogContext(__name__)

# Pillow format name -> mime type stored with the attachment
IMAGE_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


class AttachmentService:
    def __init__(self, repository: AttachmentRepository):
        self.repository = repository

    @staticmethod
    def decode_image(image: str) -> bytes:
        """
        Decode a base64 image, accepting an optional ``data:...;base64,`` prefix

        Raises:
            InvalidParameterError: if the value is not valid base64 or too large
        """
        if image.startswith("data:") and "," in image:
            image = image.split(",", 1)[1]
        try:
            data = base64.b64decode(image, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidParameterError("image", "Image is not valid base64.")

        if not data:
            raise InvalidParameterError("image", "Image is empty.")
        if len(data) > settings.MAX_IMAGE_BYTES:
            raise InvalidParameterError("image", "Image is too large.")
        return data

    @staticmethod
    def inspect_image(data: bytes) -> tuple[str, int, int]:
        """Return (mime, width, height) of a supported image"""
        try:
            img = Image.open(io.BytesIO(data))
            img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.warning(
                "Rejected unreadable image",
                extra={"error": str(e), "error_type": e.__class__.__name__},
            )
            raise InvalidParameterError("image", "Image could not be read.")

        mime = IMAGE_MIME_TYPES.get(img.format or "")
        if mime is None:
            raise InvalidParameterError(
                "image", f"Unsupported image format: {img.format}."
            )
        width, height = img.size
        return mime, width, height

    def create_image_attachment(
        self, user: Users, name: str, description: str, image: str
    ) -> Attachments:
        """
        Store a base64 encoded image as an attachment owned by ``user``

        Args:
            user: Owner of the attachment
            name: Attachment name, usually the article name
            description: Attachment description
            image: Base64 encoded image data

        Returns:
            The stored Attachments row
        """
        data = self.decode_image(image)
        mime, width, height = self.inspect_image(data)

        attachment = self.repository.create(
            Attachments(
                user_id=user.id,
                name=name,
                description=description,
                mime=mime,
                width=width,
                height=height,
                size=len(data),
                data=data,
            )
        )
        logger.info(
            "Image attachment stored",
            extra={
                "attachment_id": attachment.id,
                "mime": mime,
                "width": width,
                "height": height,
                "size": len(data),
            },
        )
        return attachment
