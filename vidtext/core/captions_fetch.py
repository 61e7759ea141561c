"""
Subtitle / caption download: plain HTTP GET of a track URL taken from metadata.
"""

import asyncio
import logging

import requests

from vidtext.core.error_codes import CaptionDownloadError
from vidtext.core.constants import HTTP_TIMEOUT_SEC

logger = logging.getLogger(__name__)


def download_caption_text(url: str, timeout: float = HTTP_TIMEOUT_SEC) -> str:
    """
    Return the body of a subtitle/caption resource as text.
    Raises CaptionDownloadError on a non-OK response or a transport failure.
    """
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise CaptionDownloadError(f"Failed to download caption: {e}") from e

    if not resp.ok:
        raise CaptionDownloadError(
            f"Failed to download caption: {resp.status_code} {resp.reason}"
        )

    logger.debug("Downloaded caption track (%d chars)", len(resp.text))
    return resp.text


async def fetch_caption_text(url: str, timeout: float = HTTP_TIMEOUT_SEC) -> str:
    return await asyncio.to_thread(download_caption_text, url, timeout)
