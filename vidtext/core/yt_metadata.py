"""
Video metadata fetching via yt-dlp, with a direct-mp4 shortcut.
"""

import json
import logging
import posixpath

import requests

from vidtext.core.error_codes import FetchError
from vidtext.core.models import VideoInfo
from vidtext.core.url_parse import is_direct_mp4_url
from vidtext.core.ytdlp import run_ytdlp
from vidtext.core.constants import (
    YTDLP_BINARY, DEFAULT_SUBTITLE_LANGUAGE, METADATA_TIMEOUT_SEC, HTTP_TIMEOUT_SEC,
)

logger = logging.getLogger(__name__)

_METADATA_FAILED = "Failed to fetch video information"


def probe_direct_mp4(url: str, timeout: float = HTTP_TIMEOUT_SEC) -> VideoInfo | None:
    """
    For a URL that points straight at an .mp4 file, check it is reachable and
    return a minimal VideoInfo. Returns None if the resource is unreachable so
    the caller can fall through to yt-dlp.
    """
    try:
        # stream=True: only the status line and headers are read
        with requests.get(url, stream=True, timeout=timeout) as resp:
            if not resp.ok:
                logger.warning("Direct mp4 probe returned %s for %s", resp.status_code, url)
                return None
    except requests.exceptions.RequestException as e:
        logger.warning("Direct mp4 probe failed for %s: %s", url, e)
        return None

    return VideoInfo(
        title=posixpath.basename(url),
        description="",
        channel="",
        webpage_url=url,
    )


def fetch_metadata(video_url: str,
                   subtitle_language: str = DEFAULT_SUBTITLE_LANGUAGE,
                   verbose: bool = True,
                   binary: str = YTDLP_BINARY,
                   timeout: float = METADATA_TIMEOUT_SEC,
                   http_timeout: float = HTTP_TIMEOUT_SEC) -> VideoInfo:
    """
    Fetch video metadata using yt-dlp --dump-json.
    Subtitle and automatic-caption descriptors are requested for subtitle_language.
    """
    if is_direct_mp4_url(video_url):
        info = probe_direct_mp4(video_url, timeout=http_timeout)
        if info is not None:
            logger.info("Using synthesized metadata for direct mp4: %s", video_url)
            return info

    options = {
        'dump_json': True,
        'verbose': verbose,
        'no_check_certificates': True,
        'prefer_free_formats': True,
        'write_subs': True,
        'write_auto_subs': True,
        'sub_langs': subtitle_language,
        'skip_download': True,
    }
    result = run_ytdlp(video_url, options, _METADATA_FAILED, binary=binary, timeout=timeout)

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise FetchError(f"{_METADATA_FAILED}: invalid yt-dlp JSON: {e}") from e

    if not isinstance(data, dict):
        raise FetchError(f"{_METADATA_FAILED}: unexpected yt-dlp output")

    logger.info("Fetched metadata for %s: %r", video_url, data.get('title'))
    return VideoInfo.from_metadata(data, video_url)
