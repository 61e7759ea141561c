"""
Transcript resolution: pick the first available source, in priority order.

1. manual subtitles  (SRT-like blocks)
2. automatic captions (JSON events)
3. music videos       → fixed "no lyrics" text, no transcription
4. audio transcription via the speech-to-text capability

Only the absence of subtitle/caption metadata moves on to the next source;
download and tool errors propagate to the caller.
"""

import asyncio
import logging
from pathlib import Path

from vidtext.core.captions_fetch import fetch_caption_text
from vidtext.core.captions_parse import parse_srt, parse_caption_events
from vidtext.core.download_media import MediaFetcher, media_path
from vidtext.core.error_codes import TranscriptionUnavailable
from vidtext.core.models import VideoInfo
from vidtext.core.transcode import Transcoder
from vidtext.core.transcribe_deepgram import SpeechToText
from vidtext.core.constants import (
    DEFAULT_SUBTITLE_LANGUAGE, HTTP_TIMEOUT_SEC, MUSIC_CATEGORY,
    NO_LYRICS_TEXT, TRANSCRIPTION_FAILED_TEXT,
)

logger = logging.getLogger(__name__)


class TranscriptResolver:

    def __init__(self, fetcher: MediaFetcher, transcoder: Transcoder,
                 transcriber: SpeechToText | None = None,
                 data_dir: Path | None = None,
                 language: str = DEFAULT_SUBTITLE_LANGUAGE,
                 http_timeout: float = HTTP_TIMEOUT_SEC):
        self.fetcher = fetcher
        self.transcoder = transcoder
        self.transcriber = transcriber
        self.data_dir = data_dir if data_dir is not None else fetcher.data_dir
        self.language = language
        self.http_timeout = http_timeout

    async def resolve(self, url: str, info: VideoInfo) -> str:
        track = info.subtitle_track(self.language)
        if track:
            logger.info("Using manual subtitles (%s) for %s", self.language, url)
            content = await fetch_caption_text(track.url, self.http_timeout)
            return parse_srt(content)

        track = info.caption_track(self.language)
        if track:
            logger.info("Using automatic captions (%s) for %s", self.language, url)
            content = await fetch_caption_text(track.url, self.http_timeout)
            return parse_caption_events(content)

        if MUSIC_CATEGORY in info.categories:
            logger.info("Music video without captions, skipping transcription: %s", url)
            return NO_LYRICS_TEXT

        return await self.transcribe_audio(url)

    async def transcribe_audio(self, url: str) -> str:
        """
        Transcribe url's audio track, reusing local artifacts:
        existing mp3 → as is; existing mp4 → transcode; otherwise fetch audio.
        """
        if self.transcriber is None:
            raise TranscriptionUnavailable("Transcription service not configured")

        mp4_path = media_path(self.data_dir, url, ".mp4")
        mp3_path = media_path(self.data_dir, url, ".mp3")

        if mp3_path.exists():
            logger.info("Reusing audio: %s", mp3_path)
        elif mp4_path.exists():
            await self.transcoder.to_audio(mp4_path, mp3_path)
        else:
            await self.fetcher.fetch_audio(url, mp3_path)

        audio = await asyncio.to_thread(mp3_path.read_bytes)
        logger.info("Transcribing %s (%d bytes)", mp3_path.name, len(audio))

        # The mp3 is kept for later runs
        transcript = await self.transcriber.transcribe(audio)
        return transcript or TRANSCRIPTION_FAILED_TEXT
