import base64
import json
import logging
import sys

import httpx
import pytest
from unittest.mock import patch

from imagegen.main import LOG_FORMATS, build_parser, main, setup_logging


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for name in ("OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY", "IMAGEGEN_IMAGE_FOLDER"):
        monkeypatch.delenv(name, raising=False)

    config = tmp_path / "config.yaml"
    config.write_text(
        "openai:\n"
        "  api_key: sk-test\n"
        "storage:\n"
        f"  image_folder: {tmp_path / 'images'}\n",
        encoding="utf-8",
    )
    return config


def test_parser_defaults():
    args = build_parser().parse_args(["a cat"])

    assert args.prompt == "a cat"
    assert args.size == "1024x1024"
    assert args.quality == "standard"
    assert args.style == "vivid"
    assert args.model == "dall-e-3"
    assert args.base64 is False


@pytest.mark.asyncio
async def test_main_prints_url(config_file, capsys):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"data": [{"url": "https://img/1.png"}]})

    code = await main(["a cat", "--style", "natural", "--config", str(config_file)], httpx.MockTransport(handler))

    assert code == 0
    assert capsys.readouterr().out.strip() == "https://img/1.png"
    assert json.loads(requests[0].content)["style"] == "natural"


@pytest.mark.asyncio
async def test_main_base64_writes_file(config_file, tmp_path, capsys):
    payload = base64.b64encode(b"png-bytes").decode()
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [{"b64_json": payload}]}))

    code = await main(["a cat", "--base64", "--config", str(config_file)], transport)

    assert code == 0
    path = capsys.readouterr().out.strip()
    assert path.startswith(str(tmp_path / "images"))
    assert open(path, "rb").read() == b"png-bytes"


@pytest.mark.asyncio
async def test_main_reports_provider_error(config_file, capsys):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(400, json={"error": {"message": "content policy violation"}})
    )

    code = await main(["a cat", "--config", str(config_file)], transport)

    assert code == 1
    assert "content policy violation" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_main_requires_prompt_or_variation(config_file):
    assert await main(["--config", str(config_file)]) == 2


def test_setup_logging_json_to_stderr():
    with patch("imagegen.main.logging.basicConfig") as basic_config:
        setup_logging("debug", "json")

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.DEBUG
    assert kwargs["format"] == LOG_FORMATS["json"]
    assert kwargs["stream"] is sys.stderr


def test_setup_logging_unknown_values_fall_back():
    with patch("imagegen.main.logging.basicConfig") as basic_config:
        setup_logging("chatty", "xml")

    kwargs = basic_config.call_args.kwargs
    assert kwargs["level"] == logging.INFO
    assert kwargs["format"] == LOG_FORMATS["text"]
