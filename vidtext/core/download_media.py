"""
Media download via yt-dlp (or plain HTTP for direct mp4 links).

Local artifacts are named <ContentIdentifier>.mp4 / .mp3 inside the data
directory and reused when already present.
"""

import asyncio
import logging
import tempfile
from pathlib import Path

import requests

from vidtext.core.cleanup import remove_temp_files
from vidtext.core.error_codes import FetchError
from vidtext.core.models import VideoInfo
from vidtext.core.transcode import Transcoder
from vidtext.core.url_parse import identify, is_direct_mp4_url
from vidtext.core.yt_metadata import fetch_metadata
from vidtext.core.ytdlp import run_ytdlp
from vidtext.core.constants import (
    YTDLP_BINARY, BEST_VIDEO_FORMAT, AUDIO_FORMAT, DEFAULT_SUBTITLE_LANGUAGE,
    METADATA_TIMEOUT_SEC, DOWNLOAD_TIMEOUT_SEC, HTTP_TIMEOUT_SEC,
)

logger = logging.getLogger(__name__)

_CHUNK_BYTES = 1024 * 1024


def media_path(data_dir: Path, url: str, suffix: str) -> Path:
    """Deterministic local path for a URL's artifact, e.g. <data_dir>/<id>.mp4"""
    return data_dir / f"{identify(url)}{suffix}"


def _ensure_written(path: Path, failure_message: str) -> Path:
    if not path.exists():
        raise FetchError(f"{failure_message}: no file at {path} after download")
    return path


def download_media(url: str, data_dir: Path, verbose: bool = True,
                   binary: str = YTDLP_BINARY,
                   timeout: float | None = DOWNLOAD_TIMEOUT_SEC) -> Path:
    """
    Download the default-quality container for url.
    Returns the existing file without fetching if it is already on disk.
    """
    output_file = media_path(data_dir, url, ".mp4")
    if output_file.exists():
        logger.info("Reusing media: %s", output_file)
        return output_file

    data_dir.mkdir(parents=True, exist_ok=True)
    failure = "Failed to download media"
    run_ytdlp(url, {
        'verbose': verbose,
        'output': str(output_file),
        'write_info_json': True,
    }, failure, binary=binary, timeout=timeout)

    logger.info("Downloaded media: %s", output_file)
    return _ensure_written(output_file, failure)


def download_video(info: VideoInfo, data_dir: Path, verbose: bool = True,
                   binary: str = YTDLP_BINARY,
                   timeout: float | None = DOWNLOAD_TIMEOUT_SEC) -> Path:
    """
    Download the best available mp4 video+audio combination.
    Same reuse rule as download_media, keyed on the video's webpage URL.
    """
    url = info.webpage_url
    output_file = media_path(data_dir, url, ".mp4")
    if output_file.exists():
        logger.info("Reusing video: %s", output_file)
        return output_file

    data_dir.mkdir(parents=True, exist_ok=True)
    failure = "Failed to download video"
    run_ytdlp(url, {
        'verbose': verbose,
        'output': str(output_file),
        'format': BEST_VIDEO_FORMAT,
        'write_info_json': True,
    }, failure, binary=binary, timeout=timeout)

    logger.info("Downloaded video: %s", output_file)
    return _ensure_written(output_file, failure)


def download_audio(url: str, output_file: Path, verbose: bool = True,
                   binary: str = YTDLP_BINARY,
                   timeout: float | None = DOWNLOAD_TIMEOUT_SEC) -> Path:
    """
    Download audio only and have yt-dlp convert it to mp3 at output_file.
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)
    # yt-dlp picks the extension after conversion; the stem stays fixed
    output_template = str(output_file.with_suffix(".%(ext)s"))

    failure = "Failed to download audio"
    run_ytdlp(url, {
        'verbose': verbose,
        'extract_audio': True,
        'audio_format': AUDIO_FORMAT,
        'output': output_template,
        'write_info_json': True,
    }, failure, binary=binary, timeout=timeout)

    logger.info("Downloaded audio: %s", output_file)
    return _ensure_written(output_file, failure)


def download_file(url: str, output_file: Path,
                  timeout: float = HTTP_TIMEOUT_SEC) -> Path:
    """Stream a plain HTTP resource to disk."""
    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            with open(output_file, 'wb') as f:
                for chunk in resp.iter_content(chunk_size=_CHUNK_BYTES):
                    f.write(chunk)
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to download audio: {e}") from e

    return output_file


class MediaFetcher:
    """
    Async adapter over yt-dlp and plain HTTP downloads.
    Blocking calls run in worker threads so the event loop stays free.
    """

    def __init__(self, data_dir: Path, transcoder: Transcoder | None = None,
                 subtitle_language: str = DEFAULT_SUBTITLE_LANGUAGE,
                 verbose: bool = True,
                 binary: str = YTDLP_BINARY,
                 metadata_timeout: float = METADATA_TIMEOUT_SEC,
                 download_timeout: float | None = DOWNLOAD_TIMEOUT_SEC,
                 http_timeout: float = HTTP_TIMEOUT_SEC):
        self.data_dir = data_dir
        self.transcoder = transcoder or Transcoder()
        self.subtitle_language = subtitle_language
        self.verbose = verbose
        self.binary = binary
        self.metadata_timeout = metadata_timeout
        self.download_timeout = download_timeout
        self.http_timeout = http_timeout

    async def fetch_metadata(self, url: str) -> VideoInfo:
        return await asyncio.to_thread(
            fetch_metadata, url, self.subtitle_language, self.verbose,
            self.binary, self.metadata_timeout, self.http_timeout,
        )

    async def fetch_media_container(self, url: str) -> Path:
        return await asyncio.to_thread(
            download_media, url, self.data_dir, self.verbose,
            self.binary, self.download_timeout,
        )

    async def fetch_best_quality_video(self, info: VideoInfo) -> Path:
        return await asyncio.to_thread(
            download_video, info, self.data_dir, self.verbose,
            self.binary, self.download_timeout,
        )

    async def fetch_audio(self, url: str, output_file: Path | None = None) -> Path:
        """
        Produce an mp3 for url at output_file (default <data_dir>/<id>.mp3).

        Direct mp4 links are fetched into the system temp dir, transcoded, and
        the temporary container is removed whether or not conversion succeeds.
        """
        output_file = output_file or media_path(self.data_dir, url, ".mp3")

        if not is_direct_mp4_url(url):
            return await asyncio.to_thread(
                download_audio, url, output_file, self.verbose,
                self.binary, self.download_timeout,
            )

        temp_file = Path(tempfile.gettempdir()) / f"{identify(url)}.mp4"
        try:
            await asyncio.to_thread(download_file, url, temp_file, self.http_timeout)
            return await self.transcoder.to_audio(temp_file, output_file)
        finally:
            remove_temp_files(temp_file)
