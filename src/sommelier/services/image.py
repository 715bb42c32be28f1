import base64
import binascii
import io
import mimetypes
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

THUMBNAIL_SIZE = (300, 400)


def resize_image(file_data: bytes, max_size=THUMBNAIL_SIZE, format: str = "jpeg") -> bytes:
    """Resize an image from an in-memory byte stream while maintaining aspect ratio.

    Args:
        file_data (bytes): The raw image file data.
        max_size (tuple): Max width and height (default: 300x400).
        format (str): Output format understood by Pillow.

    Returns:
        bytes: The resized image.

    Raises:
        ValueError: If the bytes are not an image Pillow can read.
    """
    try:
        source = Image.open(io.BytesIO(file_data))
    except UnidentifiedImageError as e:
        raise ValueError("Not a readable image") from e

    with ImageOps.exif_transpose(source) as img:
        img.thumbnail(max_size)  # Resize while maintaining aspect ratio
        if format.lower() in ("jpeg", "jpg") and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        output_buffer = io.BytesIO()
        img.save(output_buffer, format=format)
        return output_buffer.getvalue()


def encode_data_uri(data: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into its mime type and decoded payload."""
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Expected a base64 data URI")

    mime_type = header[len("data:"):-len(";base64")] or "application/octet-stream"
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError("Data URI payload is not valid base64") from e


def load_image_as_data_uri(path: Union[str, Path]) -> str:
    """Read an image file from disk into a data URI."""
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = "image/jpeg"
    return encode_data_uri(path.read_bytes(), mime_type)


def thumbnail_data_uri(data_uri: str, max_size=THUMBNAIL_SIZE) -> str:
    """Shrink a data URI image to a JPEG thumbnail suitable for storing with a record."""
    _, data = decode_data_uri(data_uri)
    return encode_data_uri(resize_image(data, max_size=max_size), "image/jpeg")
