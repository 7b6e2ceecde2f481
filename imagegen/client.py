"""OpenAI Image Generation Client

Talks to either the public OpenAI images API or an Azure OpenAI deployment
and maps the responses onto `ImagePrompt` instances.

Usage:
    generator = OpenAIImageGeneration.from_api_key("sk-...")
    prompt = ImagePrompt(prompt="A bear on a snowy peak, goldenrod line art")

    if await generator.generate(prompt, create_image_file=True):
        print(prompt.first_image_url, prompt.image_file_path)
    else:
        print(generator.error_message)

A client instance keeps the last error in `error_message`, so don't share
one instance between concurrently running calls.
"""

import logging
import mimetypes
import re
from pathlib import Path
from typing import Dict, Optional, Union

import httpx

from .prompt import ImagePrompt, ImageResult
from .types import (
    ApiError,
    AzureOpenAiCredentials,
    Credentials,
    DEFAULT_SIZE,
    ImageRequest,
    ImageResults,
    OpenAiCredentials,
    OutputFormat,
)

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"

GENERATIONS = "images/generations"
VARIATIONS = "images/variations"
MODELS = "models"

DEFAULT_TIMEOUT = 120.0
VALIDATE_TIMEOUT = 3.0

API_KEY_PATTERN = re.compile(r"^sk-[a-zA-Z0-9]{32,}$")


class OpenAIImageGeneration:
    """Image generation against OpenAI or Azure OpenAI."""

    def __init__(
        self,
        credentials: Credentials,
        proxy: Optional[str] = None,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Create a client bound to one credential mode.

        Args:
            credentials: OpenAiCredentials or AzureOpenAiCredentials
            proxy: optional outbound proxy url
            base_url: public API base url (ignored in Azure mode)
            timeout: request timeout in seconds
            transport: custom httpx transport (tests)
        """
        if not isinstance(credentials, (OpenAiCredentials, AzureOpenAiCredentials)):
            raise TypeError(f"Unsupported credentials: {type(credentials).__name__}")

        self.credentials = credentials
        self.proxy = proxy
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.error_message = ""
        self._transport = transport

    @classmethod
    def from_api_key(cls, api_key: str, **kwargs) -> "OpenAIImageGeneration":
        return cls(OpenAiCredentials(api_key=api_key), **kwargs)

    @classmethod
    def for_azure(
        cls,
        endpoint: str,
        api_key: str,
        api_version: Optional[str] = None,
        **kwargs,
    ) -> "OpenAIImageGeneration":
        if api_version:
            credentials = AzureOpenAiCredentials(endpoint, api_key, api_version)
        else:
            credentials = AzureOpenAiCredentials(endpoint, api_key)
        return cls(credentials, **kwargs)

    @property
    def is_azure(self) -> bool:
        return isinstance(self.credentials, AzureOpenAiCredentials)

    # --- Image generation API calls ---

    async def generate(
        self,
        prompt: ImagePrompt,
        create_image_file: bool = False,
        output_format: OutputFormat = OutputFormat.URL,
    ) -> bool:
        """Generate images for `prompt` and store the results on it.

        Args:
            prompt: prompt to send; its results are replaced on success
            create_image_file: also save the first image into the prompt's image folder
            output_format: return urls or inline base64 data

        Returns:
            True on success. On failure `error_message` may hold the provider's message.

        Raises:
            httpx.TransportError: the provider could not be reached.
        """
        request = ImageRequest.from_prompt(prompt, output_format)
        endpoint = self.get_endpoint_url(GENERATIONS)
        logger.info(f"Generating {request.n} image(s) with {request.model} ({request.size})")

        async with self._http_client() as client:
            response = await client.post(endpoint, json=request.to_dict())

        return await self._handle_response(prompt, response, create_image_file)

    async def create_variation(
        self,
        prompt: ImagePrompt,
        create_image_file: bool = False,
        output_format: OutputFormat = OutputFormat.URL,
    ) -> bool:
        """Create a variation of `prompt.variation_image_file_path`.

        The provider ignores the model for variations and always uses
        dall-e-2, so `prompt.model` is not sent.
        """
        image_file = prompt.variation_image_file_path
        if not image_file or not Path(image_file).is_file():
            self.set_error("Input image file not found for variation.")
            return False

        path = Path(image_file)
        content_type = mimetypes.guess_type(path.name)[0] or "image/png"
        image_bytes = path.read_bytes()

        endpoint = self.get_endpoint_url(VARIATIONS)
        logger.info(f"Creating variation of {path.name} ({prompt.image_size})")

        async with self._http_client() as client:
            response = await client.post(
                endpoint,
                files={"image": (path.name, image_bytes, content_type)},
                data={
                    "size": prompt.image_size or DEFAULT_SIZE,
                    "response_format": output_format.value,
                },
            )

        return await self._handle_response(prompt, response, create_image_file)

    async def validate_api_key(self, api_key: str) -> bool:
        """Check that `api_key` looks valid and is accepted by the provider.

        Keys are always checked against the public OpenAI models endpoint
        with a Bearer header, also for Azure clients. Never raises; any
        failure means the key is treated as invalid.
        """
        if not api_key or not API_KEY_PATTERN.match(api_key):
            return False

        try:
            async with httpx.AsyncClient(
                timeout=VALIDATE_TIMEOUT,
                proxy=self.proxy,
                transport=self._transport,
                headers={"Authorization": f"Bearer {api_key}"},
            ) as client:
                response = await client.get(f"{self.base_url}/{MODELS}")
        except Exception as e:
            logger.warning(f"API key validation request failed: {e}")
            return False

        return response.is_success

    # --- Endpoint and client setup ---

    def get_endpoint_url(self, operation_segment: str) -> str:
        """Endpoint for an operation segment.

        Args:
            operation_segment: images/generations, images/variations or models
        """
        credentials = self.credentials
        if isinstance(credentials, AzureOpenAiCredentials):
            return f"{credentials.endpoint}{operation_segment}?api-version={credentials.api_version}"

        return f"{self.base_url}/{operation_segment}"

    def get_headers(self, api_key: Optional[str] = None) -> Dict[str, str]:
        """Authentication header for the active mode."""
        credentials = self.credentials
        key = api_key or credentials.api_key
        if isinstance(credentials, AzureOpenAiCredentials):
            return {"api-key": key}

        return {"Authorization": f"Bearer {key}"}

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            proxy=self.proxy,
            transport=self._transport,
            headers=self.get_headers(),
        )

    # --- Response handling ---

    async def _handle_response(
        self,
        prompt: ImagePrompt,
        response: httpx.Response,
        create_image_file: bool,
    ) -> bool:
        if not response.is_success:
            self._set_error_from_response(response)
            return False

        try:
            results = ImageResults.from_dict(response.json())
        except (ValueError, TypeError) as e:
            logger.warning(f"Unreadable image results: {e}")
            self.set_error("Image generation failed: invalid response body")
            return False

        prompt.replace_image_urls(
            ImageResult(
                url=item.url,
                base64_data=item.b64_json,
                revised_prompt=item.revised_prompt,
            )
            for item in results.data
        )
        logger.info(f"Received {len(prompt.image_urls)} image(s)")

        if create_image_file:
            try:
                await self._create_image_file(prompt)
            except (httpx.HTTPError, OSError, ValueError) as e:
                self.set_error(f"Download failed: {e}")
                return False

        return True

    async def _create_image_file(self, prompt: ImagePrompt) -> str:
        if prompt.base64_data:
            path = prompt.save_image_from_base64()
            if not path:
                raise ValueError("image data is not valid base64")
            return path
        return await prompt.fetch_image_file(proxy=self.proxy)

    def _set_error_from_response(self, response: httpx.Response) -> None:
        logger.warning(f"Image request failed with status {response.status_code}")

        content_type = response.headers.get("content-type", "")
        if not response.content or "application/json" not in content_type:
            return

        try:
            payload = response.json()
        except ValueError:
            return

        error = ApiError.from_payload(payload)
        if error.message:
            self.set_error(f"Image generation failed: {error.message}")

    # --- Error state ---

    def set_error(self, message: Union[str, Exception, None] = None) -> None:
        """Replace the error text. None clears it."""
        if message is None:
            self.error_message = ""
        else:
            self.error_message = str(message)

    def clear_error(self) -> None:
        self.set_error(None)
