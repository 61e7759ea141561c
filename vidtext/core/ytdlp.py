"""
yt-dlp invocation: option set → CLI arguments, run, map failures to FetchError.
"""

import logging
import subprocess

from vidtext.core.constants import YTDLP_BINARY
from vidtext.core.error_codes import FetchError
from vidtext.core.security_utils import run_subprocess_capture, stderr_tail

logger = logging.getLogger(__name__)

# Boolean options → flag
_FLAG_OPTIONS = {
    'verbose': '--verbose',
    'write_info_json': '--write-info-json',
    'extract_audio': '--extract-audio',
    'skip_download': '--skip-download',
    'dump_json': '--dump-json',
    'write_subs': '--write-subs',
    'write_auto_subs': '--write-auto-subs',
    'no_check_certificates': '--no-check-certificates',
    'prefer_free_formats': '--prefer-free-formats',
}

# Valued options → flag followed by the value
_VALUE_OPTIONS = {
    'output': '-o',
    'format': '-f',
    'audio_format': '--audio-format',
    'sub_langs': '--sub-langs',
}


def build_ytdlp_args(url: str, options: dict, binary: str = YTDLP_BINARY) -> list[str]:
    """
    Map an option dict to a yt-dlp argument array.
    Falsy booleans and None values are omitted; unknown keys are rejected.
    """
    args = [binary, "--no-playlist"]
    for key, value in options.items():
        if key in _FLAG_OPTIONS:
            if value:
                args.append(_FLAG_OPTIONS[key])
        elif key in _VALUE_OPTIONS:
            if value is not None:
                args.extend([_VALUE_OPTIONS[key], str(value)])
        else:
            raise ValueError(f"Unknown yt-dlp option: {key}")
    args.append(url)
    return args


def run_ytdlp(url: str, options: dict, failure_message: str,
              binary: str = YTDLP_BINARY,
              timeout: float | None = None) -> subprocess.CompletedProcess:
    """
    Run yt-dlp and return the completed process.
    Raises FetchError (with the tool's stderr tail) on any failure.
    """
    args = build_ytdlp_args(url, options, binary)

    try:
        result = run_subprocess_capture(args, timeout=timeout)
    except FileNotFoundError as e:
        raise FetchError(f"{failure_message}: {binary} not installed") from e
    except subprocess.TimeoutExpired as e:
        raise FetchError(f"{failure_message}: yt-dlp timed out after {timeout}s") from e

    if result.returncode != 0:
        raise FetchError(
            f"{failure_message}: yt-dlp failed (rc={result.returncode}): {stderr_tail(result)}"
        )

    return result
