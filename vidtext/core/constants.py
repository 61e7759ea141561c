"""
Shared constants for vidtext.
Single source of truth, imported by every other module.
"""

import pathlib

# ── Application identity ──────────────────────────────────────────────
APP_NAME = "vidtext"
APP_VERSION = "1.0.0"

# ── Filesystem paths ─────────────────────────────────────────────────
HOME = pathlib.Path.home()

APP_STATE_DIR = HOME / ".vidtext"
CONFIG_PATH = APP_STATE_DIR / "config.json"
LOG_DIR = APP_STATE_DIR / "logs"
DEFAULT_CACHE_DB_PATH = APP_STATE_DIR / "cache.db"

# Working directory for <id>.mp4 / <id>.mp3, relative to the host's cwd
DEFAULT_DATA_DIR = pathlib.Path("./content_cache")

# ── Cache ─────────────────────────────────────────────────────────────
CACHE_NAMESPACE = "content/video"

# ── Error codes ───────────────────────────────────────────────────────
class ErrorCode:
    FETCH_FAILED = "ERR_FETCH_FAILED"
    TRANSCODE_FAILED = "ERR_TRANSCODE_FAILED"
    CAPTION_DOWNLOAD = "ERR_CAPTION_DOWNLOAD"
    CAPTION_PARSE = "ERR_CAPTION_PARSE"
    TRANSCRIPTION_UNAVAILABLE = "ERR_TRANSCRIPTION_UNAVAILABLE"
    TRANSCRIPTION_FAILED = "ERR_TRANSCRIPTION_FAILED"
    JOB_TIMEOUT = "ERR_JOB_TIMEOUT"
    UNEXPECTED = "ERR_UNEXPECTED"

# ── Transcript sentinels ──────────────────────────────────────────────
MUSIC_CATEGORY = "Music"
NO_LYRICS_TEXT = "No lyrics available."
CAPTION_PARSE_ERROR_TEXT = "Error: Unable to parse captions"
TRANSCRIPTION_FAILED_TEXT = "Transcription failed"

DEFAULT_SUBTITLE_LANGUAGE = "en"

# ── yt-dlp ────────────────────────────────────────────────────────────
YTDLP_BINARY = "yt-dlp"
BEST_VIDEO_FORMAT = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
AUDIO_FORMAT = "mp3"

# ── ffmpeg ────────────────────────────────────────────────────────────
FFMPEG_BINARY = "ffmpeg"
MP3_CODEC = "libmp3lame"

# ── Timeouts (seconds) ────────────────────────────────────────────────
METADATA_TIMEOUT_SEC = 120
DOWNLOAD_TIMEOUT_SEC = 1800
TRANSCODE_TIMEOUT_SEC = 1800
HTTP_TIMEOUT_SEC = 60

# ── Deepgram ──────────────────────────────────────────────────────────
DEEPGRAM_API_BASE = "https://api.deepgram.com/v1"
DEEPGRAM_MODEL = "nova-3"
DEEPGRAM_LANGUAGE = "en"
DEEPGRAM_API_KEY_ENV = "DEEPGRAM_API_KEY"

# ── URL recognition ───────────────────────────────────────────────────
YOUTUBE_URL_PATTERNS = [
    r'(?:https?://)?(?:www\.)?youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?(?:www\.)?youtube\.com/watch\?.+&v=([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?youtu\.be/([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?(?:www\.)?youtube\.com/embed/([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?(?:www\.)?youtube\.com/v/([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?(?:www\.)?youtube\.com/shorts/([a-zA-Z0-9_-]{11})',
    r'(?:https?://)?m\.youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})',
]
VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo.com")

CONTENT_ID_LENGTH = 16
