"""
URL parsing and content identity.
"""

import hashlib
import re
from urllib.parse import urlparse, parse_qs

from vidtext.core.constants import (
    YOUTUBE_URL_PATTERNS, VIDEO_HOSTS, CONTENT_ID_LENGTH,
)


def identify(url: str) -> str:
    """
    Derive a stable content identifier from any string.

    Deterministic across runs and processes, filesystem-safe (lowercase hex).
    Used as the cache key suffix and as the stem of local media files.
    """
    digest = hashlib.sha1(url.encode('utf-8'), usedforsecurity=False)
    return digest.hexdigest()[:CONTENT_ID_LENGTH]


def extract_video_id(url: str) -> str | None:
    """
    Extract the 11-character video_id from a YouTube URL.
    Returns None if the URL is not a recognised YouTube URL.
    """
    url = url.strip()
    if not url:
        return None

    # Try regex patterns
    for pattern in YOUTUBE_URL_PATTERNS:
        m = re.search(pattern, url)
        if m:
            return m.group(1)

    # Fallback: parse query string for 'v' parameter
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if 'youtube.com' in parsed.netloc or 'youtu.be' in parsed.netloc:
        v = parse_qs(parsed.query).get('v', [None])[0]
        if v and re.match(r'^[a-zA-Z0-9_-]{11}$', v):
            return v

    return None


def content_id_for(url: str) -> str:
    """Cache identifier: canonical video id when the URL has one, else the URL itself."""
    return identify(extract_video_id(url) or url)


def is_video_url(url: str) -> bool:
    """Quick check if a string points at a supported video host."""
    return any(host in url for host in VIDEO_HOSTS)


def is_direct_mp4_url(url: str) -> bool:
    return url.endswith(".mp4") or ".mp4?" in url
