"""
Data models (plain dataclasses) for vidtext.
"""

import asyncio
from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass
class CaptionTrack:
    url: str
    ext: Optional[str] = None
    name: Optional[str] = None


def _parse_tracks(raw) -> dict[str, list[CaptionTrack]]:
    """yt-dlp shape: {lang: [{"url": ..., "ext": ..., "name": ...}, ...]}"""
    tracks: dict[str, list[CaptionTrack]] = {}
    if not isinstance(raw, dict):
        return tracks
    for lang, entries in raw.items():
        if not isinstance(entries, list):
            continue
        tracks[lang] = [
            CaptionTrack(url=e['url'], ext=e.get('ext'), name=e.get('name'))
            for e in entries
            if isinstance(e, dict) and e.get('url')
        ]
    return tracks


@dataclass
class VideoInfo:
    title: str = ""
    description: str = ""
    channel: str = ""
    webpage_url: str = ""
    categories: list[str] = field(default_factory=list)
    subtitles: dict[str, list[CaptionTrack]] = field(default_factory=dict)
    automatic_captions: dict[str, list[CaptionTrack]] = field(default_factory=dict)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_metadata(cls, metadata: dict, url: str = "") -> "VideoInfo":
        """Build from a yt-dlp --dump-json payload. Missing fields become empty."""
        return cls(
            title=metadata.get('title') or "",
            description=metadata.get('description') or "",
            channel=metadata.get('channel') or "",
            webpage_url=metadata.get('webpage_url') or url,
            categories=list(metadata.get('categories') or []),
            subtitles=_parse_tracks(metadata.get('subtitles')),
            automatic_captions=_parse_tracks(metadata.get('automatic_captions')),
            raw=metadata,
        )

    def subtitle_track(self, lang: str) -> CaptionTrack | None:
        tracks = self.subtitles.get(lang)
        return tracks[0] if tracks else None

    def caption_track(self, lang: str) -> CaptionTrack | None:
        tracks = self.automatic_captions.get(lang)
        return tracks[0] if tracks else None


@dataclass
class TranscriptRecord:
    id: str                          # ContentIdentifier
    url: str
    title: str = ""
    source: str = ""
    description: str = ""
    text: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptRecord":
        return cls(
            id=data['id'],
            url=data['url'],
            title=data.get('title') or "",
            source=data.get('source') or "",
            description=data.get('description') or "",
            text=data.get('text') or "",
        )


@dataclass
class QueueEntry:
    url: str
    future: asyncio.Future = field(repr=False)
