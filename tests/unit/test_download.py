import httpx
import pytest

from imagegen.download import download_to_file, fetch_bytes


@pytest.mark.asyncio
async def test_fetch_bytes():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"image-bytes"))

    assert await fetch_bytes("https://img/1.png", transport=transport) == b"image-bytes"


@pytest.mark.asyncio
async def test_fetch_bytes_raises_on_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(404))

    with pytest.raises(httpx.HTTPStatusError):
        await fetch_bytes("https://img/missing.png", transport=transport)


@pytest.mark.asyncio
async def test_download_to_file(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"image-bytes"))
    target = tmp_path / "sub" / "image.png"

    assert await download_to_file("https://img/1.png", str(target), transport=transport) == str(target)
    assert target.read_bytes() == b"image-bytes"


@pytest.mark.asyncio
async def test_download_to_file_swallows_errors(tmp_path):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    target = tmp_path / "image.png"

    assert await download_to_file("https://img/1.png", str(target), transport=httpx.MockTransport(handler)) is None
    assert not target.exists()
