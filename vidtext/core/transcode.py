"""
Container → MP3 audio extraction using ffmpeg.
"""

import asyncio
import logging
import subprocess
from pathlib import Path

from vidtext.core.cleanup import remove_temp_files
from vidtext.core.security_utils import run_subprocess_capture, stderr_tail
from vidtext.core.error_codes import TranscodeError
from vidtext.core.constants import FFMPEG_BINARY, MP3_CODEC, TRANSCODE_TIMEOUT_SEC

logger = logging.getLogger(__name__)


def convert_to_mp3(input_path: Path, output_path: Path,
                   binary: str = FFMPEG_BINARY,
                   timeout: float | None = TRANSCODE_TIMEOUT_SEC) -> Path:
    """
    Strip the video stream and encode the audio as MP3.
    Returns path to the audio file. On failure no file is left at output_path,
    so a partial encode is never mistaken for a finished one.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    args = [
        binary,
        "-y",                           # overwrite
        "-i", str(input_path),
        "-vn",                          # no video
        "-codec:a", MP3_CODEC,
        str(output_path),
    ]

    try:
        result = run_subprocess_capture(args, timeout=timeout)
    except FileNotFoundError as e:
        raise TranscodeError(f"{binary} not installed") from e
    except subprocess.TimeoutExpired as e:
        remove_temp_files(output_path)
        raise TranscodeError(f"ffmpeg timed out after {timeout}s on {input_path}") from e

    if result.returncode != 0:
        remove_temp_files(output_path)
        raise TranscodeError(
            f"ffmpeg failed (rc={result.returncode}) on {input_path}: {stderr_tail(result)}"
        )

    if not output_path.exists():
        raise TranscodeError(f"Audio file not created: {output_path}")

    logger.info("Extracted audio: %s", output_path)
    return output_path


class Transcoder:
    """Async adapter over ffmpeg; the conversion runs in a worker thread."""

    def __init__(self, binary: str = FFMPEG_BINARY,
                 timeout: float | None = TRANSCODE_TIMEOUT_SEC):
        self.binary = binary
        self.timeout = timeout

    async def to_audio(self, input_path: Path, output_path: Path | None = None) -> Path:
        output_path = output_path or input_path.with_suffix(".mp3")
        return await asyncio.to_thread(
            convert_to_mp3, input_path, output_path, self.binary, self.timeout,
        )
