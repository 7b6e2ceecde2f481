"""Image Prompt Entities

`ImagePrompt` holds the generation inputs together with the results the
provider returned. `ImageResult` is one returned image.
"""

import base64
import binascii
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Tuple

import httpx

from . import files
from .download import download_to_file, fetch_bytes
from .types import (
    DEFAULT_COUNT,
    DEFAULT_MODEL,
    DEFAULT_QUALITY,
    DEFAULT_SIZE,
    DEFAULT_STYLE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageResult:
    """One image returned by the provider.

    The provider returns either `url` or `base64_data` depending on the
    requested output format. `revised_prompt` is kept exactly as returned,
    even when it is identical to the prompt that was sent;
    `ImagePrompt.has_revised_prompt` is where the comparison happens.
    """

    url: Optional[str] = None
    base64_data: Optional[str] = None
    revised_prompt: Optional[str] = None

    def get_bytes_from_base64(self) -> Optional[bytes]:
        """Decoded inline payload, or None if there is none or it isn't valid base64."""
        if not self.base64_data:
            return None
        try:
            return base64.b64decode(self.base64_data)
        except binascii.Error as e:
            logger.warning(f"Undecodable base64 image data: {e}")
            return None

    def save_file_from_base64(
        self, filename: Optional[str] = None, image_folder: Optional[str] = None
    ) -> bool:
        """Write the inline payload to `filename` or a new file in `image_folder`."""
        data = self.get_bytes_from_base64()
        if data is None:
            return False

        try:
            if not filename:
                files.write_data_to_image_file(data, image_folder or files.default_image_folder())
            else:
                Path(filename).write_bytes(data)
        except OSError as e:
            logger.warning(f"Saving image data failed: {e}")
            return False

        return True

    async def download_bytes_from_url(self, proxy: Optional[str] = None) -> Optional[bytes]:
        """Bytes behind `url`, or None if there is no url or the download fails."""
        if not self.url:
            return None
        try:
            return await fetch_bytes(self.url, proxy=proxy)
        except Exception as e:
            logger.warning(f"Image download failed: {e}")
            return None

    async def download_file_from_url(self, target_filename: str) -> bool:
        if not self.url:
            return False
        return bool(await download_to_file(self.url, target_filename))

    async def download_bytes(self, proxy: Optional[str] = None) -> Optional[bytes]:
        """Image bytes by the best available means.

        Inline payload wins over the url; None when neither is present.
        """
        if self.base64_data:
            return self.get_bytes_from_base64()
        if self.url:
            return await self.download_bytes_from_url(proxy=proxy)
        return None


@dataclass
class ImagePrompt:
    """Prompt container holding both the request data and the results.

    A client's `generate()` fills `image_urls` in place. The result tuple is
    only ever replaced as a whole (`replace_image_urls`), so the derived
    `first_*` properties always reflect one consistent result set.
    """

    prompt: Optional[str] = None
    # seed image for create_variation()
    variation_image_file_path: Optional[str] = None
    # dall-e-3: 1024x1024, 1792x1024, 1024x1792
    # dall-e-2: 1024x1024, 512x512, 256x256
    image_size: str = DEFAULT_SIZE
    image_quality: str = DEFAULT_QUALITY
    image_style: str = DEFAULT_STYLE
    # always 1 for dall-e-3
    image_count: int = DEFAULT_COUNT
    model: str = DEFAULT_MODEL

    image_urls: Tuple[ImageResult, ...] = ()
    # file name only, resolved against image_folder_path
    image_filename: Optional[str] = None
    image_folder_path: str = field(default_factory=files.default_image_folder)

    def __post_init__(self) -> None:
        self.image_urls = tuple(self.image_urls or ())

    def replace_image_urls(self, results: Iterable[ImageResult]) -> None:
        self.image_urls = tuple(results)

    # --- Derived values ---

    @property
    def first_image(self) -> Optional[ImageResult]:
        return self.image_urls[0] if self.image_urls else None

    @property
    def first_image_url(self) -> Optional[str]:
        first = self.first_image
        return first.url if first else None

    @property
    def first_image_uri(self) -> Optional[httpx.URL]:
        url = self.first_image_url
        return httpx.URL(url) if url else None

    @property
    def revised_prompt(self) -> Optional[str]:
        first = self.first_image
        return first.revised_prompt if first else None

    @property
    def has_revised_prompt(self) -> bool:
        """True when the provider rewrote the prompt into something different."""
        revised = self.revised_prompt
        if not revised:
            return False
        return revised.strip() != (self.prompt or "").strip()

    @property
    def base64_data(self) -> Optional[str]:
        first = self.first_image
        return first.base64_data if first else None

    @property
    def byte_data(self) -> Optional[bytes]:
        try:
            data, _ = files.embedded_base64_to_binary(self.base64_data)
        except binascii.Error as e:
            logger.warning(f"Undecodable base64 image data: {e}")
            return None
        return data

    @property
    def image_file_path(self) -> Optional[str]:
        """Full path of the cached image file, or the empty file name."""
        if not self.image_filename:
            return self.image_filename
        return self.get_image_filename(self.image_filename)

    @property
    def has_image_file(self) -> bool:
        return bool(self.image_filename) and os.path.exists(self.image_file_path)

    @property
    def is_empty(self) -> bool:
        return (
            not self.prompt
            and not self.revised_prompt
            and not self.image_filename
            and not self.image_urls
        )

    # --- File access ---

    def get_image_filename(self, file_only_name: Optional[str] = None) -> Optional[str]:
        """Resolve a file name (default: `image_filename`) against the image folder.

        Names that already contain a path separator are returned as is.
        """
        return files.resolve_image_filename(
            file_only_name or self.image_filename, self.image_folder_path
        )

    def get_bytes_from_image_file(self, filename: Optional[str] = None) -> Optional[bytes]:
        path = self.get_image_filename(filename)
        if path and os.path.exists(path):
            return Path(path).read_bytes()
        return None

    def get_base64_data_from_image_file(self, filename: Optional[str] = None) -> Optional[str]:
        """Image file contents as an embeddable `data:image/png;base64,` string."""
        data = self.get_bytes_from_image_file(filename)
        if data is None:
            return None
        return files.binary_to_embedded_base64(data, files.IMAGE_MIME_TYPE)

    async def fetch_image_file(
        self, image_url: Optional[str] = None, proxy: Optional[str] = None
    ) -> str:
        """Download an image into the image folder and remember its file name.

        Args:
            image_url: url to download, defaults to the first result's url
            proxy: optional outbound proxy url

        Returns:
            The new file name (no path).

        Raises:
            ValueError: no url is available.
            httpx.HTTPError: the download failed.
            OSError: the file could not be written.
        """
        url = image_url or self.first_image_url
        if not url:
            raise ValueError("No image url available to download")

        data = await fetch_bytes(url, proxy=proxy)
        self.image_filename = files.write_data_to_image_file(data, self.image_folder_path)
        return self.image_filename

    async def download_image_to_file(
        self, image_url: Optional[str] = None, proxy: Optional[str] = None
    ) -> bool:
        """Download an image (default: the first result) into the image folder.

        On failure `image_filename` keeps its previous value.
        """
        try:
            await self.fetch_image_file(image_url, proxy=proxy)
        except Exception as e:
            logger.warning(f"Downloading image to file failed: {e}")
            return False
        return True

    # --- Base64 operations ---

    def get_bytes_from_base64(self) -> Optional[bytes]:
        first = self.first_image
        return first.get_bytes_from_base64() if first else None

    def save_image_from_base64(self, filename: Optional[str] = None) -> Optional[str]:
        """Write the first result's inline payload to disk.

        Without `filename` a new file is created in the image folder and
        `image_filename` is updated. With `filename` the data goes exactly
        there and `image_filename` is left alone.

        Returns:
            The written path, or None when there is no payload to write.
        """
        data = self.get_bytes_from_base64()
        if data is None:
            return None

        if not filename:
            self.image_filename = files.write_data_to_image_file(data, self.image_folder_path)
            return self.image_file_path

        Path(filename).write_bytes(data)
        return filename

    def copy_from(self, existing: Optional["ImagePrompt"] = None, no_image_data: bool = False) -> "ImagePrompt":
        """Copy prompt text, options and (optionally) results from another prompt."""
        if existing is None:
            existing = ImagePrompt()

        self.prompt = existing.prompt
        self.image_size = existing.image_size or DEFAULT_SIZE
        self.image_quality = existing.image_quality or DEFAULT_QUALITY
        self.image_style = existing.image_style or DEFAULT_STYLE
        self.model = existing.model or DEFAULT_MODEL

        if not no_image_data:
            self.replace_image_urls(existing.image_urls)

        return self

    def __str__(self) -> str:
        if not self.prompt:
            return "(empty ImagePrompt)"
        return _text_abstract(self.prompt, 45)


def _text_abstract(text: str, length: int) -> str:
    """Shorten text to `length` characters on a word boundary."""
    if len(text) <= length:
        return text

    cut = text[:length]
    space = cut.rfind(" ")
    if space > 0:
        cut = cut[:space]
    return cut + "..."
