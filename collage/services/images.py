import base64
import binascii
import logging
import re
import uuid
from io import BytesIO
from PIL import Image as PILImage, UnidentifiedImageError
from tortoise.transactions import in_transaction
from collage.config import settings
from collage.models.image import Image
from collage.models.rating import Rating
from collage.models.favorite import Favorite
from collage.services.storage import storage
from collage.services.metrics import record_image_created

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=-]+)*;base64,(?P<data>.*)$", re.DOTALL)

# Pillow format -> (extension, content type)
_FORMATS = {
    "PNG": ("png", "image/png"),
    "JPEG": ("jpg", "image/jpeg"),
    "WEBP": ("webp", "image/webp"),
    "GIF": ("gif", "image/gif"),
}


class ImageTooLarge(ValueError):
    pass


def decode_data_uri(data_uri: str) -> bytes:
    """Decode ``data:<mime>;base64,<data>`` (or bare base64) into bytes."""
    m = _DATA_URI.match(data_uri.strip())
    payload = m.group("data") if m else data_uri.strip()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Image data is not valid base64")
    if not data:
        raise ValueError("Image data is empty")
    return data


def encode_data_uri(data: bytes, content_type: str = "image/png") -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def sniff_image(data: bytes) -> tuple[str, str]:
    """Verify the payload is an image and return its (extension, content type)."""
    if len(data) > settings.MAX_IMAGE_BYTES:
        raise ImageTooLarge(f"Image exceeds {settings.MAX_IMAGE_BYTES} bytes")
    try:
        with PILImage.open(BytesIO(data)) as im:
            im.verify()
            fmt = im.format
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValueError(f"Image data could not be decoded: {e}")
    if fmt not in _FORMATS:
        raise ValueError(f"Unsupported image format {fmt}")
    return _FORMATS[fmt]


async def add_image(user_id: str, original_prompt: str, enhanced_prompt: str, image_bytes: bytes) -> str:
    """Store the payload on disk and insert the image row with zero ratings."""
    ext, content_type = sniff_image(image_bytes)
    image_id = str(uuid.uuid4())
    filename = f"{image_id}.{ext}"
    storage.save(filename, image_bytes)

    try:
        await Image.create(
            id=image_id,
            owner_id=user_id,
            original_prompt=original_prompt,
            enhanced_prompt=enhanced_prompt,
            image_filename=filename,
            content_type=content_type,
        )
    except Exception:
        storage.delete(filename)
        record_image_created("error")
        raise

    logger.info("Stored image %s for user %s (%d bytes)", image_id, user_id, len(image_bytes))
    record_image_created("ok")
    return image_id


async def delete_image(image_id: str, requesting_user_id: str) -> bool:
    """Delete an image owned by the requesting user.

    Returns False without deleting anything when the image is missing or
    belongs to someone else.
    """
    async with in_transaction() as conn:
        image = await Image.filter(id=image_id).select_for_update().using_db(conn).first()
        if image is None:
            logger.info("Delete refused: image %s not found", image_id)
            return False
        if str(image.owner_id) != str(requesting_user_id):
            logger.info("Delete refused: image %s not owned by %s", image_id, requesting_user_id)
            return False

        await Rating.filter(image_id=image_id).using_db(conn).delete()
        await Favorite.filter(image_id=image_id).using_db(conn).delete()
        await Image.filter(id=image_id).using_db(conn).delete()

    if not storage.delete(image.image_filename):
        logger.warning("Image file %s already missing", image.image_filename)
    logger.info("Deleted image %s", image_id)
    return True
