"""
Pipeline orchestrator: URL → TranscriptRecord.

The host builds one PipelineContext and one TranscriptPipeline and calls
process_video(); submissions are serialized by the job queue and memoized in
the cache gateway.
"""

import logging
from dataclasses import dataclass

from vidtext.core.cache import CacheGateway, CacheStore, MemoryCacheStore
from vidtext.core.config import AppConfig
from vidtext.core.download_media import MediaFetcher
from vidtext.core.job_queue import JobQueue
from vidtext.core.models import TranscriptRecord
from vidtext.core.transcode import Transcoder
from vidtext.core.transcribe_deepgram import SpeechToText
from vidtext.core.transcript_resolver import TranscriptResolver
from vidtext.core.url_parse import content_id_for

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Collaborators for one pipeline instance, constructed once by the host."""
    config: AppConfig
    cache: CacheGateway
    fetcher: MediaFetcher
    transcoder: Transcoder
    transcriber: SpeechToText | None = None


def create_context(config: AppConfig,
                   cache_store: CacheStore | None = None,
                   transcriber: SpeechToText | None = None) -> PipelineContext:
    """
    Build the default collaborators from config and create the data directory.
    Without a cache_store, results are memoized in process memory only.
    """
    data_dir = config.data_dir
    data_dir.mkdir(parents=True, exist_ok=True)

    transcoder = Transcoder(
        binary=config.get('ffmpeg_path'),
        timeout=config.get('transcode_timeout_sec'),
    )
    fetcher = MediaFetcher(
        data_dir,
        transcoder=transcoder,
        subtitle_language=config.subtitle_language,
        verbose=config.get('verbose_fetch'),
        binary=config.get('ytdlp_path'),
        metadata_timeout=config.get('metadata_timeout_sec'),
        download_timeout=config.get('download_timeout_sec'),
        http_timeout=config.get('http_timeout_sec'),
    )
    cache = CacheGateway(cache_store or MemoryCacheStore(), config.cache_namespace)

    return PipelineContext(
        config=config,
        cache=cache,
        fetcher=fetcher,
        transcoder=transcoder,
        transcriber=transcriber,
    )


class TranscriptPipeline:

    def __init__(self, context: PipelineContext):
        self.context = context
        self.resolver = TranscriptResolver(
            context.fetcher,
            context.transcoder,
            context.transcriber,
            data_dir=context.config.data_dir,
            language=context.config.subtitle_language,
            http_timeout=context.config.get('http_timeout_sec'),
        )
        self.queue = JobQueue(self.resolve, job_timeout=context.config.job_timeout_sec)

    async def process_video(self, url: str) -> TranscriptRecord:
        """Queue url behind any earlier submissions and return its record."""
        return await self.queue.submit(url)

    async def resolve(self, url: str) -> TranscriptRecord:
        """Run the pipeline for url now, short-circuiting on a cache hit."""
        content_id = content_id_for(url)

        cached = await self.context.cache.get(content_id)
        if cached is not None:
            return cached

        info = await self.context.fetcher.fetch_metadata(url)
        text = await self.resolver.resolve(url, info)

        record = TranscriptRecord(
            id=content_id,
            url=url,
            title=info.title,
            source=info.channel,
            description=info.description,
            text=text,
        )
        await self.context.cache.set(content_id, record)

        logger.info("Resolved transcript for %s (%d chars)", url, len(text))
        return record

    async def shutdown(self):
        await self.queue.shutdown()
