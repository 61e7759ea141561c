"""
Speech-to-text capability and its Deepgram implementation.
Uses Nova-3 Monolingual (English), pre-recorded mode.
Includes exponential backoff for rate-limit (429) responses.
"""

import asyncio
import json
import logging
import time
import random
from typing import Protocol

import requests

from vidtext.core.error_codes import TranscriptionFailed
from vidtext.core.constants import (
    DEEPGRAM_API_BASE, DEEPGRAM_MODEL, DEEPGRAM_LANGUAGE,
)

logger = logging.getLogger(__name__)

DEEPGRAM_PRERECORDED_URL = f"{DEEPGRAM_API_BASE}/listen"


class SpeechToText(Protocol):
    """Capability the host provides for audio transcription."""

    async def transcribe(self, audio: bytes) -> str:
        ...


_MAX_RATE_LIMIT_RETRIES = 4
_RATE_LIMIT_BASE_DELAY = 2.0   # seconds, doubles each retry with jitter


def request_transcription(audio: bytes, api_key: str) -> dict:
    """
    Transcribe MP3 bytes using Deepgram Nova-3 Monolingual (pre-recorded).
    Retries up to 4 times with exponential backoff on 429 rate-limit responses.
    Returns the Deepgram response dict.
    """
    headers = {
        "Authorization": f"Token {api_key}",
        "Content-Type": "audio/mpeg",
    }

    params = {
        "model": DEEPGRAM_MODEL,
        "language": DEEPGRAM_LANGUAGE,
        "smart_format": "true",
        "punctuate": "true",
        "paragraphs": "true",
    }

    # Adaptive timeout: ~1 min per 10MB, minimum 120s
    timeout_sec = max(120, int(len(audio) / (10 * 1024 * 1024) * 60) + 60)

    for attempt in range(_MAX_RATE_LIMIT_RETRIES + 1):
        try:
            resp = requests.post(
                DEEPGRAM_PRERECORDED_URL,
                headers=headers,
                params=params,
                data=audio,
                timeout=timeout_sec,
            )
        except requests.exceptions.Timeout as e:
            raise TranscriptionFailed("Deepgram request timed out") from e
        except requests.exceptions.RequestException as e:
            raise TranscriptionFailed(f"Deepgram request failed: {e}") from e

        if resp.status_code == 429:
            if attempt < _MAX_RATE_LIMIT_RETRIES:
                # Exponential backoff with jitter: 2s, 4s, 8s, 16s (+/- 10%)
                delay = _RATE_LIMIT_BASE_DELAY * (2 ** attempt)
                delay *= 1 + random.uniform(-0.1, 0.1)
                logger.warning(
                    "Deepgram rate limited (429), retrying in %.1fs (attempt %d/%d)",
                    delay, attempt + 1, _MAX_RATE_LIMIT_RETRIES,
                )
                time.sleep(delay)
                continue
            raise TranscriptionFailed(
                f"Deepgram rate limited (429) after {_MAX_RATE_LIMIT_RETRIES} retries"
            )

        if resp.status_code != 200:
            # Never log the API key
            error_body = resp.text[:300] if resp.text else "No response body"
            raise TranscriptionFailed(f"Deepgram returned {resp.status_code}: {error_body}")

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise TranscriptionFailed("Failed to parse Deepgram response JSON") from e

    # Should never reach here
    raise TranscriptionFailed("Deepgram request exhausted retries")


def extract_transcript_text(deepgram_response: dict) -> str:
    """
    Extract plain text transcript from Deepgram response.
    Uses paragraphs if available, falls back to channels/alternatives.
    """
    try:
        results = deepgram_response.get('results', {})
        alternative = results.get('channels', [{}])[0].get('alternatives', [{}])[0]

        # Try paragraphs first
        paragraphs = alternative.get('paragraphs', {})
        if paragraphs and paragraphs.get('paragraphs'):
            text_parts = []
            for para in paragraphs['paragraphs']:
                sentences = para.get('sentences', [])
                para_text = ' '.join(s.get('text', '') for s in sentences)
                if para_text.strip():
                    text_parts.append(para_text.strip())
            if text_parts:
                return '\n\n'.join(text_parts)

        # Fallback to transcript
        transcript = alternative.get('transcript', '')
        if transcript:
            return transcript.strip()

    except (IndexError, KeyError, TypeError, AttributeError) as e:
        logger.warning("Error extracting transcript: %s", e)

    return ""


class DeepgramTranscriber:
    """SpeechToText backed by the Deepgram pre-recorded API."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("Deepgram API key is required")
        self._api_key = api_key

    async def transcribe(self, audio: bytes) -> str:
        started = time.monotonic()
        result = await asyncio.to_thread(request_transcription, audio, self._api_key)
        text = extract_transcript_text(result)
        logger.info("Deepgram transcribed %d bytes in %.1fs",
                    len(audio), time.monotonic() - started)
        return text
