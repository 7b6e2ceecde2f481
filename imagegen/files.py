"""Image file helpers shared by prompts and results."""

import base64
import logging
import os
import secrets
import string
import tempfile
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".png"
IMAGE_MIME_TYPE = "image/png"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_unique_id(length: int = 8) -> str:
    """Random lower-case alphanumeric identifier."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def is_full_path(filename: str) -> bool:
    return "/" in filename or "\\" in filename


def resolve_image_filename(filename: Optional[str], image_folder: str) -> Optional[str]:
    """Resolve a file name against the image folder.

    Names that already contain a directory separator are returned unchanged,
    bare names are joined to `image_folder`. Empty names are returned as is.
    """
    if not filename:
        return filename

    if is_full_path(filename):
        return filename

    return os.path.join(image_folder, filename)


def write_data_to_image_file(data: bytes, image_folder: str) -> str:
    """Write bytes to a new `_<id>.png` file in the image folder.

    Returns:
        The file name only (no directory).
    """
    short_filename = "_" + generate_unique_id(8) + IMAGE_EXTENSION

    folder = Path(image_folder)
    folder.mkdir(parents=True, exist_ok=True)
    (folder / short_filename).write_bytes(data)

    logger.debug(f"Wrote {len(data)} bytes to {folder / short_filename}")
    return short_filename


def binary_to_embedded_base64(data: bytes, mime_type: str = IMAGE_MIME_TYPE) -> str:
    """Encode bytes as a `data:` URL suitable for embedding in a document."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def embedded_base64_to_binary(value: Optional[str]) -> Tuple[Optional[bytes], Optional[str]]:
    """Decode plain base64 or a `data:<mime>;base64,` string.

    Returns:
        (bytes, mime_type) - bytes is None when there is nothing to decode.
    """
    if not value:
        return None, None

    mime_type = None
    if value.startswith("data:"):
        header, _, value = value.partition(",")
        mime_type = header[5:].split(";")[0] or None

    return base64.b64decode(value), mime_type


def default_image_folder() -> str:
    """`<tempdir>/OpenAi-Images/Images`, used when no folder is configured."""
    return os.path.join(tempfile.gettempdir(), "OpenAi-Images", "Images")
