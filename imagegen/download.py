"""HTTP download helpers"""

import logging
from pathlib import Path
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60.0


async def fetch_bytes(
    url: str,
    proxy: Optional[str] = None,
    timeout: float = DOWNLOAD_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """Download the body at `url`.

    Raises:
        httpx.HTTPError: transport failure or non-success status.
    """
    async with httpx.AsyncClient(
        timeout=timeout,
        proxy=proxy,
        transport=transport,
        follow_redirects=True,
    ) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


async def download_to_file(
    url: str,
    target_filename: str,
    proxy: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """Download `url` into `target_filename`, creating its folder.

    Returns:
        The written file name, or None on any failure.
    """
    try:
        data = await fetch_bytes(url, proxy=proxy, transport=transport)
        target = Path(target_filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except Exception as e:
        logger.warning(f"Download of {url} failed: {e}")
        return None

    return str(target)
