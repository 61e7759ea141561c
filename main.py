#!/usr/bin/env python3
"""
vidtext v1.0.0: host bootstrap.
Configures logging, checks external tools, builds the pipeline and resolves
the URLs given on the command line, printing each record as JSON.
"""

import sys
import json
import asyncio
import logging
import traceback
from datetime import datetime

from vidtext.core.constants import APP_NAME, APP_VERSION, LOG_DIR
from vidtext.core.config import AppConfig
from vidtext.core.cache_sqlite import SqliteCacheStore
from vidtext.core.diagnostics import get_diagnostics
from vidtext.core.error_codes import PipelineError
from vidtext.core.pipeline import TranscriptPipeline, create_context
from vidtext.core.transcribe_deepgram import DeepgramTranscriber

# ── Logging setup (writes to ~/.vidtext/logs/ and stderr) ─────────────
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "app.log"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.FileHandler(LOG_FILE, encoding="utf-8"),
        logging.StreamHandler(sys.stderr),
    ],
)
logger = logging.getLogger(APP_NAME)


def check_prerequisites(config: AppConfig) -> dict:
    """Check that yt-dlp and ffmpeg are available; exit if not."""
    diagnostics = get_diagnostics(config)
    missing = [
        name for name, key in (("yt-dlp", "ytdlp_version"), ("ffmpeg", "ffmpeg_version"))
        if diagnostics[key] == "Not installed"
    ]
    if missing:
        logger.error("Missing required tools: %s", ", ".join(missing))
        sys.exit(1)

    for key, value in diagnostics.items():
        logger.info("%s: %s", key, value)
    return diagnostics


async def run(urls: list[str], config: AppConfig) -> int:
    api_key = config.deepgram_api_key
    transcriber = DeepgramTranscriber(api_key) if api_key else None
    if transcriber is None:
        logger.warning("No Deepgram API key; audio transcription fallback disabled")

    store = SqliteCacheStore(config.cache_db_path)
    pipeline = TranscriptPipeline(create_context(config, store, transcriber))

    failures = 0
    try:
        results = await asyncio.gather(
            *(pipeline.process_video(url) for url in urls),
            return_exceptions=True,
        )
        for url, result in zip(urls, results):
            if isinstance(result, PipelineError):
                failures += 1
                logger.error("Failed %s: %s", url, result)
                continue
            if isinstance(result, BaseException):
                raise result
            print(json.dumps(result.to_dict(), ensure_ascii=False))
    finally:
        await pipeline.shutdown()
        store.close()

    return 1 if failures else 0


def main():
    logger.info("=" * 60)
    logger.info("%s v%s starting at %s", APP_NAME, APP_VERSION, datetime.now().isoformat())
    logger.info("Python: %s", sys.executable)
    logger.info("=" * 60)

    urls = [arg.strip() for arg in sys.argv[1:] if arg.strip()]
    if not urls:
        print(f"usage: {sys.argv[0]} URL [URL ...]", file=sys.stderr)
        sys.exit(2)

    try:
        config = AppConfig()
        check_prerequisites(config)
        sys.exit(asyncio.run(run(urls, config)))
    except Exception as e:
        logger.critical("Fatal error: %s: %s\n%s", type(e).__name__, e, traceback.format_exc())
        sys.exit(1)


if __name__ == "__main__":
    main()
