"""Configuration Management"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import httpx
import yaml

from .client import OPENAI_BASE_URL, OpenAIImageGeneration
from .files import default_image_folder
from .prompt import ImagePrompt
from .types import DEFAULT_AZURE_API_VERSION


class ConfigError(ValueError):
    """No usable provider configuration."""


@dataclass
class OpenAiConfig:
    """Public OpenAI API"""
    api_key: str = ""
    base_url: str = OPENAI_BASE_URL


@dataclass
class AzureConfig:
    """Azure OpenAI deployment"""
    endpoint: str = ""
    api_key: str = ""
    api_version: str = DEFAULT_AZURE_API_VERSION


@dataclass
class StorageConfig:
    """Where generated images are written"""
    image_folder: str = field(default_factory=default_image_folder)


@dataclass
class LoggingConfig:
    """Logging"""
    level: str = "INFO"
    format: str = "text"


@dataclass
class Settings:
    """Client settings"""
    openai: OpenAiConfig = field(default_factory=OpenAiConfig)
    azure: AzureConfig = field(default_factory=AzureConfig)
    proxy: Optional[str] = None
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings.

        Args:
            config_path: YAML file. Defaults to $IMAGEGEN_CONFIG or
                <project root>/config/config.yaml; a missing file is fine.

        Returns:
            Settings with environment variables applied on top of the file.
        """
        # 1. Resolve the config file
        if config_path is None:
            env_path = os.getenv("IMAGEGEN_CONFIG")
            if env_path:
                config_path = Path(env_path)
            else:
                project_root = Path(__file__).parent.parent
                config_path = project_root / "config" / "config.yaml"
        config_path = Path(config_path)

        # 2. Read YAML
        config_data = {}
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        # 3. Providers (environment overrides the file)
        openai_data = config_data.get("openai") or {}
        openai = OpenAiConfig(
            api_key=os.getenv("OPENAI_API_KEY", openai_data.get("api_key", "")),
            base_url=openai_data.get("base_url", OPENAI_BASE_URL),
        )

        azure_data = config_data.get("azure") or {}
        azure = AzureConfig(
            endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", azure_data.get("endpoint", "")),
            api_key=os.getenv("AZURE_OPENAI_API_KEY", azure_data.get("api_key", "")),
            api_version=os.getenv(
                "AZURE_OPENAI_API_VERSION",
                azure_data.get("api_version", DEFAULT_AZURE_API_VERSION),
            ),
        )

        # 4. Storage
        storage_data = config_data.get("storage") or {}
        storage = StorageConfig(
            image_folder=os.getenv(
                "IMAGEGEN_IMAGE_FOLDER",
                storage_data.get("image_folder") or default_image_folder(),
            ),
        )

        # 5. Logging
        logging_data = config_data.get("logging") or {}
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
            format=logging_data.get("format", "text"),
        )

        return cls(
            openai=openai,
            azure=azure,
            proxy=os.getenv("IMAGEGEN_PROXY", config_data.get("proxy")) or None,
            storage=storage,
            logging=logging_config,
        )

    def create_image_generation(
        self, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> OpenAIImageGeneration:
        """Build a client, preferring Azure when an endpoint is configured."""
        if self.azure.endpoint:
            if not self.azure.api_key:
                raise ConfigError("Azure OpenAI endpoint configured but API key not provided")
            return OpenAIImageGeneration.for_azure(
                self.azure.endpoint,
                self.azure.api_key,
                self.azure.api_version,
                proxy=self.proxy,
                transport=transport,
            )

        if not self.openai.api_key:
            raise ConfigError("No OpenAI API key configured (set OPENAI_API_KEY)")

        return OpenAIImageGeneration.from_api_key(
            self.openai.api_key,
            proxy=self.proxy,
            base_url=self.openai.base_url,
            transport=transport,
        )

    def new_prompt(self, **fields) -> ImagePrompt:
        """ImagePrompt writing into the configured image folder."""
        fields.setdefault("image_folder_path", self.storage.image_folder)
        return ImagePrompt(**fields)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Convenience wrapper for Settings.load"""
    return Settings.load(config_path)
