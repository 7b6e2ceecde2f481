"""imagegen - OpenAI / Azure OpenAI image generation client

Sends prompts to the DALL-E images API, keeps the results on an
ImagePrompt and optionally saves the images to local files.
"""

__version__ = "0.1.0"

from .client import OpenAIImageGeneration
from .prompt import ImagePrompt, ImageResult
from .types import AzureOpenAiCredentials, OpenAiCredentials, OutputFormat
