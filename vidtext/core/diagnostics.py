"""
Diagnostics: tool version detection and system checks.
"""

import logging
import subprocess

from vidtext.core.config import AppConfig
from vidtext.core.security_utils import run_subprocess_capture

logger = logging.getLogger(__name__)


def get_ytdlp_version(binary: str = "yt-dlp") -> str:
    """Return yt-dlp version string, or error message."""
    try:
        result = run_subprocess_capture([binary, "--version"], timeout=10)
        if result.returncode == 0:
            return result.stdout.strip()
        return f"Error (rc={result.returncode})"
    except FileNotFoundError:
        return "Not installed"
    except (subprocess.SubprocessError, OSError) as e:
        return f"Error: {e}"


def get_ffmpeg_version(binary: str = "ffmpeg") -> str:
    """Return ffmpeg version string, or error message."""
    try:
        result = run_subprocess_capture([binary, "-version"], timeout=10)
        if result.returncode == 0:
            lines = result.stdout.strip().splitlines()
            return lines[0] if lines else "unknown"
        return f"Error (rc={result.returncode})"
    except FileNotFoundError:
        return "Not installed"
    except (subprocess.SubprocessError, OSError) as e:
        return f"Error: {e}"


def get_diagnostics(config: AppConfig) -> dict:
    """Gather all diagnostic information."""
    return {
        "ytdlp_version": get_ytdlp_version(config.get('ytdlp_path')),
        "ffmpeg_version": get_ffmpeg_version(config.get('ffmpeg_path')),
        "data_dir": str(config.data_dir.resolve()),
        "transcription_configured": config.deepgram_api_key is not None,
    }
