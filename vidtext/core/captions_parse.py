"""
Captions parsing → plain text.
- SRT-like subtitle blocks (manual subtitles)
- JSON event payloads (automatic captions)
"""

import json
import logging

from vidtext.core.constants import CAPTION_PARSE_ERROR_TEXT
from vidtext.core.error_codes import CaptionParseError

logger = logging.getLogger(__name__)


def parse_srt(content: str) -> str:
    """
    Blocks are separated by blank lines; the first two lines of each block
    (cue number, timing) are dropped, the rest joined with spaces.
    Blocks are joined with spaces, so a trailing empty block leaves a
    trailing space.
    """
    return " ".join(
        " ".join(block.split("\n")[2:])
        for block in content.split("\n\n")
    )


def _caption_events_text(content: str) -> str:
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise CaptionParseError(f"Invalid caption JSON: {e}") from e

    events = payload.get('events') if isinstance(payload, dict) else None
    if not isinstance(events, list):
        raise CaptionParseError("Caption payload has no events")

    try:
        text = "".join(
            "".join(seg.get('utf8') or "" for seg in event['segs'])
            for event in events
            if event.get('segs')
        )
    except (AttributeError, TypeError, KeyError) as e:
        raise CaptionParseError(f"Malformed caption events: {e}") from e

    # Only the first newline is collapsed
    return text.replace("\n", " ", 1)


def parse_caption_events(content: str) -> str:
    """
    Concatenate every segment's text across all events, in order.
    A malformed payload yields the parse-error sentinel instead of raising.
    """
    try:
        return _caption_events_text(content)
    except CaptionParseError as e:
        logger.warning("Caption parse failed: %s", e.message)
        return CAPTION_PARSE_ERROR_TEXT
