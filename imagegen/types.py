"""Image Generation Wire Types

Request/response structures in the exact shape the OpenAI images API
expects and returns, plus the two credential modes a client can run in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

DEFAULT_SIZE = "1024x1024"
DEFAULT_QUALITY = "standard"
DEFAULT_STYLE = "vivid"
DEFAULT_MODEL = "dall-e-3"
DEFAULT_COUNT = 1

DEFAULT_AZURE_API_VERSION = "2023-12-01-preview"


class OutputFormat(Enum):
    """How the provider should return generated images."""

    URL = "url"
    BASE64 = "b64_json"


@dataclass
class ImageRequest:
    """Body of an images/generations request."""

    prompt: str
    model: str = DEFAULT_MODEL
    n: int = DEFAULT_COUNT
    size: str = DEFAULT_SIZE
    response_format: str = OutputFormat.URL.value
    style: str = DEFAULT_STYLE  # natural
    quality: str = DEFAULT_QUALITY  # hd

    @classmethod
    def from_prompt(cls, prompt, output_format: OutputFormat = OutputFormat.URL) -> "ImageRequest":
        """Build a request from an ImagePrompt, falling back to defaults for unset fields."""
        return cls(
            prompt=(prompt.prompt or "").strip(),
            model=prompt.model or DEFAULT_MODEL,
            n=prompt.image_count or DEFAULT_COUNT,
            size=prompt.image_size or DEFAULT_SIZE,
            response_format=output_format.value,
            style=prompt.image_style or DEFAULT_STYLE,
            quality=prompt.image_quality or DEFAULT_QUALITY,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "model": self.model,
            "n": self.n,
            "size": self.size,
            "response_format": self.response_format,
            "style": self.style,
            "quality": self.quality,
        }


@dataclass
class ImageData:
    """One entry of the `data` array in a results envelope."""

    url: Optional[str] = None
    b64_json: Optional[str] = None
    revised_prompt: Optional[str] = None


@dataclass
class ImageResults:
    """Results envelope returned by images/generations and images/variations."""

    created: int = 0
    data: List[ImageData] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ImageResults":
        """Parse a decoded JSON envelope.

        Raises:
            ValueError: payload is not an object or `data` is not a list.
        """
        if not isinstance(payload, dict):
            raise ValueError("results envelope must be a JSON object")

        entries = payload.get("data") or []
        if not isinstance(entries, list):
            raise ValueError("results envelope 'data' must be a list")

        return cls(
            created=int(payload.get("created") or 0),
            data=[
                ImageData(
                    url=entry.get("url"),
                    b64_json=entry.get("b64_json"),
                    revised_prompt=entry.get("revised_prompt"),
                )
                for entry in entries
                if isinstance(entry, dict)
            ],
        )


@dataclass
class ApiError:
    """Error envelope: {"error": {"message": ..., "code": ...}}"""

    message: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiError":
        """Decode defensively, a missing or malformed error object yields empty fields."""
        if not isinstance(payload, dict):
            return cls()

        error = payload.get("error")
        if not isinstance(error, dict):
            return cls()

        message = error.get("message")
        code = error.get("code")
        return cls(
            message=message if isinstance(message, str) else None,
            code=str(code) if code is not None else None,
        )


@dataclass(frozen=True)
class OpenAiCredentials:
    """Public API mode: Bearer token against api.openai.com."""

    api_key: str


@dataclass(frozen=True)
class AzureOpenAiCredentials:
    """Enterprise mode: tenant endpoint, `api-key` header and api-version query."""

    endpoint: str
    api_key: str
    api_version: str = DEFAULT_AZURE_API_VERSION

    def __post_init__(self) -> None:
        # endpoint is always stored with a trailing slash
        if not self.endpoint.endswith("/"):
            object.__setattr__(self, "endpoint", self.endpoint + "/")
        if not self.api_version:
            object.__setattr__(self, "api_version", DEFAULT_AZURE_API_VERSION)


Credentials = Union[OpenAiCredentials, AzureOpenAiCredentials]
