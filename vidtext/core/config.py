"""
Application configuration manager.
Stores settings in a JSON file under the app state directory.
"""

import json
import logging
import os
from pathlib import Path

from vidtext.core.constants import (
    CONFIG_PATH, DEFAULT_DATA_DIR, DEFAULT_CACHE_DB_PATH, CACHE_NAMESPACE,
    DEFAULT_SUBTITLE_LANGUAGE, YTDLP_BINARY, FFMPEG_BINARY,
    METADATA_TIMEOUT_SEC, DOWNLOAD_TIMEOUT_SEC, TRANSCODE_TIMEOUT_SEC,
    HTTP_TIMEOUT_SEC, DEEPGRAM_API_KEY_ENV,
)

# Validation bounds
_TIMEOUT_MIN = 5            # seconds
_TIMEOUT_MAX = 6 * 3600     # 6 hours

_TIMEOUT_KEYS = {
    'metadata_timeout_sec': METADATA_TIMEOUT_SEC,
    'download_timeout_sec': DOWNLOAD_TIMEOUT_SEC,
    'transcode_timeout_sec': TRANSCODE_TIMEOUT_SEC,
    'http_timeout_sec': HTTP_TIMEOUT_SEC,
}

logger = logging.getLogger(__name__)

_DEFAULTS = {
    'data_dir': str(DEFAULT_DATA_DIR),
    'cache_namespace': CACHE_NAMESPACE,
    'cache_db_path': str(DEFAULT_CACHE_DB_PATH),
    'subtitle_language': DEFAULT_SUBTITLE_LANGUAGE,
    'ytdlp_path': YTDLP_BINARY,
    'ffmpeg_path': FFMPEG_BINARY,
    'verbose_fetch': True,
    'metadata_timeout_sec': METADATA_TIMEOUT_SEC,
    'download_timeout_sec': DOWNLOAD_TIMEOUT_SEC,
    'transcode_timeout_sec': TRANSCODE_TIMEOUT_SEC,
    'http_timeout_sec': HTTP_TIMEOUT_SEC,
    'job_timeout_sec': None,
}


class AppConfig:
    """Manages application configuration stored as JSON."""

    def __init__(self, config_path: Path | None = None, **overrides):
        self.path = config_path or CONFIG_PATH
        self._data: dict = {}
        self.load()
        for key, value in overrides.items():
            self._data[key] = self._validate(key, value)

    def load(self):
        """Load config from disk, merging with defaults."""
        self._data = dict(_DEFAULTS)
        if self.path.exists():
            try:
                with open(self.path, 'r') as f:
                    saved = json.load(f)
                for key, value in saved.items():
                    self._data[key] = self._validate(key, value)
            except Exception as e:
                logger.warning("Failed to load config: %s", e)

    def save(self):
        """Persist config to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(self._data, f, indent=2)

    def get(self, key: str, default=None):
        return self._data.get(key, default)

    def set(self, key: str, value):
        value = self._validate(key, value)
        self._data[key] = value
        self.save()

    def _validate(self, key: str, value):
        """Validate and coerce config values to safe ranges."""
        if key in _TIMEOUT_KEYS:
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning("Invalid %s %r, using default", key, value)
                return _TIMEOUT_KEYS[key]
            return max(_TIMEOUT_MIN, min(_TIMEOUT_MAX, value))

        if key == 'job_timeout_sec':
            if value is None:
                return None
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning("Invalid job_timeout_sec %r, disabling", value)
                return None
            return value if value > 0 else None

        if key == 'subtitle_language':
            if not isinstance(value, str) or not value.strip():
                logger.warning("Invalid subtitle_language %r, using default", value)
                return DEFAULT_SUBTITLE_LANGUAGE
            return value.strip()

        if key == 'cache_namespace':
            if not isinstance(value, str) or not value.strip('/'):
                logger.warning("Invalid cache_namespace %r, using default", value)
                return CACHE_NAMESPACE
            return value.strip('/')

        if key == 'verbose_fetch':
            return bool(value)

        return value

    @property
    def data_dir(self) -> Path:
        return Path(self._data.get('data_dir', str(DEFAULT_DATA_DIR)))

    @property
    def cache_db_path(self) -> Path:
        return Path(self._data.get('cache_db_path', str(DEFAULT_CACHE_DB_PATH)))

    @property
    def cache_namespace(self) -> str:
        return self._data.get('cache_namespace', CACHE_NAMESPACE)

    @property
    def subtitle_language(self) -> str:
        return self._data.get('subtitle_language', DEFAULT_SUBTITLE_LANGUAGE)

    @property
    def job_timeout_sec(self) -> float | None:
        return self._data.get('job_timeout_sec')

    @property
    def deepgram_api_key(self) -> str | None:
        """Read from the environment only; never persisted."""
        key = os.environ.get(DEEPGRAM_API_KEY_ENV, "").strip()
        return key or None
