import pytest

from imagegen.config import ConfigError, Settings, load_settings
from imagegen.files import default_image_folder

ENV_VARS = [
    "OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_API_VERSION",
    "IMAGEGEN_PROXY",
    "IMAGEGEN_IMAGE_FOLDER",
    "IMAGEGEN_CONFIG",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.yaml")

    assert settings.openai.api_key == ""
    assert settings.openai.base_url == "https://api.openai.com/v1"
    assert settings.azure.endpoint == ""
    assert settings.azure.api_version == "2023-12-01-preview"
    assert settings.proxy is None
    assert settings.storage.image_folder == default_image_folder()
    assert settings.logging.level == "INFO"


def test_yaml_and_env_override(tmp_path, monkeypatch):
    config = tmp_path / "config.yaml"
    config.write_text(
        "openai:\n"
        "  api_key: sk-from-file\n"
        "proxy: http://proxy:3128\n"
        "storage:\n"
        "  image_folder: /data/images\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  format: json\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")

    settings = Settings.load(config)

    assert settings.openai.api_key == "sk-from-env"
    assert settings.proxy == "http://proxy:3128"
    assert settings.storage.image_folder == "/data/images"
    assert settings.logging.level == "DEBUG"
    assert settings.logging.format == "json"


def test_config_path_from_env(tmp_path, monkeypatch):
    config = tmp_path / "other.yaml"
    config.write_text("openai:\n  api_key: sk-env-path\n", encoding="utf-8")
    monkeypatch.setenv("IMAGEGEN_CONFIG", str(config))

    assert load_settings().openai.api_key == "sk-env-path"


def test_create_image_generation_public(tmp_path):
    settings = Settings()
    settings.openai.api_key = "sk-test"
    settings.proxy = "http://proxy:3128"

    client = settings.create_image_generation()

    assert client.is_azure is False
    assert client.proxy == "http://proxy:3128"
    assert client.get_headers() == {"Authorization": "Bearer sk-test"}


def test_create_image_generation_prefers_azure():
    settings = Settings()
    settings.openai.api_key = "sk-test"
    settings.azure.endpoint = "https://tenant.openai.azure.com/openai/deployments/dalle3"
    settings.azure.api_key = "azure-key"

    client = settings.create_image_generation()

    assert client.is_azure is True
    assert client.get_endpoint_url("images/generations").startswith(
        "https://tenant.openai.azure.com/openai/deployments/dalle3/images/generations?api-version="
    )


def test_create_image_generation_without_keys():
    with pytest.raises(ConfigError):
        Settings().create_image_generation()

    settings = Settings()
    settings.azure.endpoint = "https://tenant.example/"
    with pytest.raises(ConfigError):
        settings.create_image_generation()


def test_new_prompt_uses_configured_folder():
    settings = Settings()
    settings.storage.image_folder = "/data/images"

    prompt = settings.new_prompt(prompt="cat")

    assert prompt.prompt == "cat"
    assert prompt.image_folder_path == "/data/images"
    assert settings.new_prompt(image_folder_path="/elsewhere").image_folder_path == "/elsewhere"
