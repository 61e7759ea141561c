#!/usr/bin/env python3
"""
Unit tests for vidtext core modules.
Tests cover: identity, URL parsing, errors, config, models, captions parsing,
yt-dlp argument mapping, metadata fetch, downloads, transcoding, cache store,
Deepgram response handling.
"""

import sys
import os
import json
import tempfile
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import unittest

from vidtext.core.constants import (
    ErrorCode, CACHE_NAMESPACE, CAPTION_PARSE_ERROR_TEXT, BEST_VIDEO_FORMAT,
    METADATA_TIMEOUT_SEC, DEEPGRAM_API_KEY_ENV,
)
from vidtext.core.url_parse import (
    identify, extract_video_id, content_id_for, is_video_url, is_direct_mp4_url,
)
from vidtext.core.error_codes import (
    PipelineError, FetchError, TranscodeError, CaptionDownloadError,
    CaptionParseError, TranscriptionUnavailable, TranscriptionFailed,
    UnknownPipelineFailure,
)
from vidtext.core.config import AppConfig
from vidtext.core.models import VideoInfo, TranscriptRecord
from vidtext.core.captions_parse import parse_srt, parse_caption_events
from vidtext.core.captions_fetch import download_caption_text
from vidtext.core.ytdlp import build_ytdlp_args, run_ytdlp
from vidtext.core.yt_metadata import fetch_metadata
from vidtext.core.download_media import download_media, download_video, media_path
from vidtext.core.transcode import convert_to_mp3
from vidtext.core.cache_sqlite import SqliteCacheStore
from vidtext.core.cleanup import remove_temp_files
from vidtext.core.diagnostics import get_ytdlp_version, get_ffmpeg_version
from vidtext.core.security_utils import run_subprocess, stderr_tail
from vidtext.core.transcribe_deepgram import (
    extract_transcript_text, request_transcription, DeepgramTranscriber,
)


def _completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout, stderr)


def _fake_ytdlp_writes_output(args, **kwargs):
    """Stand-in for the yt-dlp subprocess: writes the file named after -o."""
    output = Path(args[args.index("-o") + 1])
    output.write_bytes(b"media")
    return _completed(args)


class TestIdentity(unittest.TestCase):
    """Test content identifier derivation."""

    def test_pinned_identifiers(self):
        self.assertEqual(identify(""), "da39a3ee5e6b4b0d")
        self.assertEqual(identify("dQw4w9WgXcQ"), "3dd08983d7046cc1")
        self.assertEqual(identify("https://example.com/clip.mp4"), "09cf9b8828415910")

    def test_deterministic(self):
        for s in ["", "x", "https://vimeo.com/12345", "ünïcødé ✓"]:
            self.assertEqual(identify(s), identify(s))

    def test_filesystem_safe(self):
        result = identify("../../etc/passwd?x=1&y=/2")
        self.assertRegex(result, r'^[0-9a-f]{16}$')

    def test_distinct_inputs(self):
        self.assertNotEqual(identify("a"), identify("b"))


class TestURLParsing(unittest.TestCase):
    """Test video URL parsing."""

    def test_standard_url(self):
        self.assertEqual(
            extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ"),
            "dQw4w9WgXcQ",
        )

    def test_short_url(self):
        self.assertEqual(extract_video_id("https://youtu.be/dQw4w9WgXcQ"), "dQw4w9WgXcQ")

    def test_embed_url(self):
        self.assertEqual(
            extract_video_id("https://www.youtube.com/embed/dQw4w9WgXcQ"),
            "dQw4w9WgXcQ",
        )

    def test_v_url(self):
        self.assertEqual(extract_video_id("https://www.youtube.com/v/dQw4w9WgXcQ"), "dQw4w9WgXcQ")

    def test_shorts_url(self):
        self.assertEqual(
            extract_video_id("https://www.youtube.com/shorts/dQw4w9WgXcQ"),
            "dQw4w9WgXcQ",
        )

    def test_v_not_first_param(self):
        self.assertEqual(
            extract_video_id("https://www.youtube.com/watch?list=PL1&v=dQw4w9WgXcQ"),
            "dQw4w9WgXcQ",
        )

    def test_invalid_url(self):
        self.assertIsNone(extract_video_id("https://www.google.com"))
        self.assertIsNone(extract_video_id("not a url"))
        self.assertIsNone(extract_video_id(""))

    def test_content_id_uses_video_id(self):
        self.assertEqual(
            content_id_for("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=120"),
            identify("dQw4w9WgXcQ"),
        )
        self.assertEqual(
            content_id_for("https://youtu.be/dQw4w9WgXcQ"),
            content_id_for("https://www.youtube.com/watch?v=dQw4w9WgXcQ"),
        )

    def test_content_id_falls_back_to_url(self):
        url = "https://vimeo.com/76979871"
        self.assertEqual(content_id_for(url), identify(url))

    def test_non_standard_id_length_keys_on_url(self):
        for url in ["https://youtu.be/abc123", "https://www.youtube.com/watch?v=short"]:
            self.assertIsNone(extract_video_id(url))
            self.assertEqual(content_id_for(url), identify(url))

    def test_is_video_url(self):
        self.assertTrue(is_video_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ"))
        self.assertTrue(is_video_url("https://youtu.be/dQw4w9WgXcQ"))
        self.assertTrue(is_video_url("https://vimeo.com/76979871"))
        self.assertFalse(is_video_url("https://www.google.com"))

    def test_is_direct_mp4_url(self):
        self.assertTrue(is_direct_mp4_url("https://cdn.example.com/a/clip.mp4"))
        self.assertTrue(is_direct_mp4_url("https://cdn.example.com/clip.mp4?sig=abc"))
        self.assertFalse(is_direct_mp4_url("https://cdn.example.com/clip.mp4.html"))
        self.assertFalse(is_direct_mp4_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ"))


class TestErrorCodes(unittest.TestCase):
    """Test error taxonomy."""

    def test_codes(self):
        self.assertEqual(FetchError("x").code, ErrorCode.FETCH_FAILED)
        self.assertEqual(TranscodeError("x").code, ErrorCode.TRANSCODE_FAILED)
        self.assertEqual(CaptionDownloadError("x").code, ErrorCode.CAPTION_DOWNLOAD)
        self.assertEqual(CaptionParseError("x").code, ErrorCode.CAPTION_PARSE)
        self.assertEqual(TranscriptionUnavailable("x").code, ErrorCode.TRANSCRIPTION_UNAVAILABLE)
        self.assertEqual(TranscriptionFailed("x").code, ErrorCode.TRANSCRIPTION_FAILED)
        self.assertEqual(UnknownPipelineFailure("x").code, ErrorCode.UNEXPECTED)

    def test_message_format(self):
        err = FetchError("Failed to download media")
        self.assertEqual(str(err), "[ERR_FETCH_FAILED] Failed to download media")
        self.assertEqual(err.message, "Failed to download media")

    def test_hierarchy(self):
        self.assertIsInstance(TranscodeError("x"), PipelineError)
        self.assertIsInstance(CaptionParseError("x"), PipelineError)

    def test_explicit_code(self):
        self.assertEqual(PipelineError("x", code="ERR_CUSTOM").code, "ERR_CUSTOM")


class TestConfig(unittest.TestCase):
    """Test JSON-backed configuration."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "config.json"

    def tearDown(self):
        self.tmp.cleanup()

    def test_defaults(self):
        config = AppConfig(self.path)
        self.assertEqual(config.cache_namespace, CACHE_NAMESPACE)
        self.assertEqual(config.subtitle_language, "en")
        self.assertEqual(config.data_dir, Path("./content_cache"))
        self.assertIsNone(config.job_timeout_sec)
        self.assertEqual(config.get('metadata_timeout_sec'), METADATA_TIMEOUT_SEC)

    def test_load_from_file(self):
        self.path.write_text(json.dumps({'subtitle_language': 'de', 'data_dir': '/tmp/media'}))
        config = AppConfig(self.path)
        self.assertEqual(config.subtitle_language, 'de')
        self.assertEqual(config.data_dir, Path('/tmp/media'))

    def test_corrupt_file_uses_defaults(self):
        self.path.write_text("{not json")
        config = AppConfig(self.path)
        self.assertEqual(config.subtitle_language, 'en')

    def test_save_roundtrip(self):
        config = AppConfig(self.path)
        config.set('subtitle_language', 'fr')
        self.assertEqual(AppConfig(self.path).subtitle_language, 'fr')

    def test_timeout_validation(self):
        config = AppConfig(self.path, http_timeout_sec="abc", metadata_timeout_sec=1)
        self.assertEqual(config.get('http_timeout_sec'), 60)
        self.assertEqual(config.get('metadata_timeout_sec'), 5)

    def test_job_timeout_validation(self):
        self.assertIsNone(AppConfig(self.path, job_timeout_sec=0).job_timeout_sec)
        self.assertIsNone(AppConfig(self.path, job_timeout_sec="soon").job_timeout_sec)
        self.assertEqual(AppConfig(self.path, job_timeout_sec=30).job_timeout_sec, 30.0)

    def test_namespace_validation(self):
        self.assertEqual(AppConfig(self.path, cache_namespace="/a/b/").cache_namespace, "a/b")
        self.assertEqual(AppConfig(self.path, cache_namespace="").cache_namespace, CACHE_NAMESPACE)

    def test_deepgram_key_from_env(self):
        with patch.dict(os.environ, {DEEPGRAM_API_KEY_ENV: " secret "}):
            self.assertEqual(AppConfig(self.path).deepgram_api_key, "secret")
        with patch.dict(os.environ, {DEEPGRAM_API_KEY_ENV: ""}):
            self.assertIsNone(AppConfig(self.path).deepgram_api_key)


class TestModels(unittest.TestCase):
    """Test metadata and record models."""

    def test_video_info_from_metadata(self):
        info = VideoInfo.from_metadata({
            'title': 'T',
            'description': 'D',
            'channel': 'C',
            'categories': ['Education'],
            'webpage_url': 'https://www.youtube.com/watch?v=dQw4w9WgXcQ',
            'subtitles': {'en': [{'url': 'https://s/1', 'ext': 'srt'}]},
            'automatic_captions': {'en': [{'url': 'https://c/1', 'ext': 'json3'}], 'de': []},
        })
        self.assertEqual(info.title, 'T')
        self.assertEqual(info.channel, 'C')
        self.assertEqual(info.subtitle_track('en').url, 'https://s/1')
        self.assertEqual(info.caption_track('en').ext, 'json3')
        self.assertIsNone(info.caption_track('de'))
        self.assertIsNone(info.subtitle_track('fr'))

    def test_video_info_missing_fields(self):
        info = VideoInfo.from_metadata({'title': None, 'subtitles': None}, "https://x")
        self.assertEqual(info.title, "")
        self.assertEqual(info.webpage_url, "https://x")
        self.assertEqual(info.categories, [])
        self.assertEqual(info.subtitles, {})

    def test_transcript_record_from_dict(self):
        data = {'id': 'abc', 'url': 'u', 'title': 't', 'source': 's',
                'description': 'd', 'text': 'hello'}
        self.assertEqual(TranscriptRecord.from_dict(data).to_dict(), data)


class TestCaptionsParsing(unittest.TestCase):
    """Test subtitle and caption parsing."""

    def test_parse_srt_example(self):
        content = ("1\n00:00:00,000 --> 00:00:02,000\nHello world\n\n"
                   "2\n00:00:02,000 --> 00:00:04,000\nSecond line\n\n")
        self.assertEqual(parse_srt(content), "Hello world Second line ")

    def test_parse_srt_multiline_block(self):
        content = "1\n00:00:00,000 --> 00:00:02,000\nfirst\nsecond"
        self.assertEqual(parse_srt(content), "first second")

    def test_parse_caption_events(self):
        payload = {'events': [
            {'tStartMs': 0, 'segs': [{'utf8': 'Hello'}, {'utf8': ' world'}]},
            {'tStartMs': 10},
            {'segs': [{'utf8': '\n'}, {'utf8': 'again'}]},
        ]}
        self.assertEqual(parse_caption_events(json.dumps(payload)), "Hello world again")

    def test_only_first_newline_replaced(self):
        payload = {'events': [{'segs': [{'utf8': 'a\nb'}, {'utf8': '\nc\n'}]}]}
        self.assertEqual(parse_caption_events(json.dumps(payload)), "a b\nc\n")

    def test_segment_without_text(self):
        payload = {'events': [{'segs': [{'utf8': 'a'}, {'tOffsetMs': 5}]}]}
        self.assertEqual(parse_caption_events(json.dumps(payload)), "a")

    def test_empty_events(self):
        self.assertEqual(parse_caption_events('{"events": []}'), "")

    def test_invalid_json_returns_sentinel(self):
        self.assertEqual(parse_caption_events("<xml>nope</xml>"), CAPTION_PARSE_ERROR_TEXT)

    def test_missing_events_returns_sentinel(self):
        self.assertEqual(parse_caption_events('{"wireMagic": "pb3"}'), CAPTION_PARSE_ERROR_TEXT)
        self.assertEqual(parse_caption_events('[1, 2]'), CAPTION_PARSE_ERROR_TEXT)

    def test_malformed_segments_return_sentinel(self):
        self.assertEqual(
            parse_caption_events('{"events": [{"segs": [1, 2]}]}'),
            CAPTION_PARSE_ERROR_TEXT,
        )


class TestCaptionsFetch(unittest.TestCase):
    """Test caption transport."""

    @patch('vidtext.core.captions_fetch.requests.get')
    def test_ok_response(self, mock_get):
        mock_get.return_value = MagicMock(ok=True, text="1\n00\nhi\n\n")
        self.assertEqual(download_caption_text("https://captions/1"), "1\n00\nhi\n\n")

    @patch('vidtext.core.captions_fetch.requests.get')
    def test_non_ok_raises(self, mock_get):
        mock_get.return_value = MagicMock(ok=False, status_code=404, reason="Not Found")
        with self.assertRaises(CaptionDownloadError) as ctx:
            download_caption_text("https://captions/1")
        self.assertIn("404", ctx.exception.message)

    @patch('vidtext.core.captions_fetch.requests.get')
    def test_network_error_raises(self, mock_get):
        import requests
        mock_get.side_effect = requests.exceptions.ConnectionError("down")
        with self.assertRaises(CaptionDownloadError):
            download_caption_text("https://captions/1")


class TestYtdlpArgs(unittest.TestCase):
    """Test yt-dlp option mapping and failure handling."""

    def test_metadata_options(self):
        args = build_ytdlp_args("https://v", {
            'dump_json': True,
            'verbose': True,
            'no_check_certificates': True,
            'prefer_free_formats': True,
            'write_subs': True,
            'write_auto_subs': True,
            'sub_langs': 'en',
            'skip_download': True,
        })
        self.assertEqual(args[0], "yt-dlp")
        self.assertEqual(args[-1], "https://v")
        for flag in ("--dump-json", "--verbose", "--no-check-certificates",
                     "--prefer-free-formats", "--write-subs", "--write-auto-subs",
                     "--skip-download"):
            self.assertIn(flag, args)
        self.assertEqual(args[args.index("--sub-langs") + 1], "en")

    def test_download_options(self):
        args = build_ytdlp_args("https://v", {
            'output': '/data/x.%(ext)s',
            'extract_audio': True,
            'audio_format': 'mp3',
            'format': None,
            'verbose': False,
        }, binary="/opt/bin/yt-dlp")
        self.assertEqual(args[0], "/opt/bin/yt-dlp")
        self.assertEqual(args[args.index("-o") + 1], '/data/x.%(ext)s')
        self.assertEqual(args[args.index("--audio-format") + 1], 'mp3')
        self.assertIn("--extract-audio", args)
        self.assertNotIn("-f", args)
        self.assertNotIn("--verbose", args)

    def test_unknown_option_rejected(self):
        with self.assertRaises(ValueError):
            build_ytdlp_args("https://v", {'call_home': True})

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_nonzero_exit_raises_fetch_error(self, mock_run):
        mock_run.return_value = _completed([], returncode=1, stderr="ERROR: Unsupported URL")
        with self.assertRaises(FetchError) as ctx:
            run_ytdlp("https://v", {}, "Failed to fetch video information")
        self.assertIn("Unsupported URL", ctx.exception.message)

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_missing_binary_raises_fetch_error(self, mock_run):
        mock_run.side_effect = FileNotFoundError("yt-dlp")
        with self.assertRaises(FetchError):
            run_ytdlp("https://v", {}, "Failed")

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_timeout_raises_fetch_error(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["yt-dlp"], 5)
        with self.assertRaises(FetchError):
            run_ytdlp("https://v", {}, "Failed", timeout=5)


class TestMetadataFetch(unittest.TestCase):
    """Test metadata fetching."""

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_parses_ytdlp_json(self, mock_run):
        mock_run.return_value = _completed([], stdout=json.dumps({
            'title': 'Talk', 'channel': 'Chan', 'description': 'About',
            'categories': ['Education'],
        }))
        info = fetch_metadata("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        self.assertEqual(info.title, 'Talk')
        self.assertEqual(info.channel, 'Chan')
        self.assertEqual(info.webpage_url, "https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        args = mock_run.call_args[0][0]
        self.assertIn("--dump-json", args)
        self.assertIn("--skip-download", args)

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_invalid_json_raises(self, mock_run):
        mock_run.return_value = _completed([], stdout="not json")
        with self.assertRaises(FetchError):
            fetch_metadata("https://vimeo.com/1")

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    @patch('vidtext.core.yt_metadata.requests.get')
    def test_direct_mp4_synthesized(self, mock_get, mock_run):
        resp = MagicMock(ok=True)
        resp.__enter__.return_value = resp
        mock_get.return_value = resp
        info = fetch_metadata("https://cdn.example.com/media/clip.mp4")
        self.assertEqual(info.title, "clip.mp4")
        self.assertEqual(info.description, "")
        self.assertEqual(info.channel, "")
        mock_run.assert_not_called()

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    @patch('vidtext.core.yt_metadata.requests.get')
    def test_direct_mp4_unreachable_falls_through(self, mock_get, mock_run):
        import requests
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        mock_run.return_value = _completed([], stdout=json.dumps({'title': 'Generic'}))
        info = fetch_metadata("https://cdn.example.com/clip.mp4?sig=1")
        self.assertEqual(info.title, 'Generic')
        mock_run.assert_called_once()

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    @patch('vidtext.core.yt_metadata.requests.get')
    def test_direct_mp4_non_ok_falls_through(self, mock_get, mock_run):
        resp = MagicMock(ok=False, status_code=403)
        resp.__enter__.return_value = resp
        mock_get.return_value = resp
        mock_run.return_value = _completed([], returncode=1, stderr="ERROR: 403")
        with self.assertRaises(FetchError):
            fetch_metadata("https://cdn.example.com/clip.mp4")
        mock_run.assert_called_once()


class TestDownloadMedia(unittest.TestCase):
    """Test local artifact downloads."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_download_media_reuses_existing_file(self, mock_run):
        mock_run.side_effect = _fake_ytdlp_writes_output
        url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

        first = download_media(url, self.data_dir)
        second = download_media(url, self.data_dir)

        self.assertEqual(first, second)
        self.assertEqual(first, self.data_dir / f"{identify(url)}.mp4")
        self.assertEqual(mock_run.call_count, 1)
        self.assertIn("--write-info-json", mock_run.call_args[0][0])

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_download_video_best_format(self, mock_run):
        mock_run.side_effect = _fake_ytdlp_writes_output
        info = VideoInfo(webpage_url="https://vimeo.com/76979871")
        path = download_video(info, self.data_dir)
        self.assertEqual(path, media_path(self.data_dir, info.webpage_url, ".mp4"))
        args = mock_run.call_args[0][0]
        self.assertEqual(args[args.index("-f") + 1], BEST_VIDEO_FORMAT)

        download_video(info, self.data_dir)
        self.assertEqual(mock_run.call_count, 1)

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_download_failure(self, mock_run):
        mock_run.return_value = _completed([], returncode=1, stderr="HTTP Error 404")
        with self.assertRaises(FetchError) as ctx:
            download_media("https://vimeo.com/1", self.data_dir)
        self.assertIn("Failed to download media", ctx.exception.message)

    @patch('vidtext.core.ytdlp.run_subprocess_capture')
    def test_missing_output_after_success(self, mock_run):
        mock_run.return_value = _completed([])
        with self.assertRaises(FetchError):
            download_media("https://vimeo.com/1", self.data_dir)


class TestTranscode(unittest.TestCase):
    """Test ffmpeg audio extraction."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.src = Path(self.tmp.name) / "in.mp4"
        self.src.write_bytes(b"video")
        self.dst = Path(self.tmp.name) / "out.mp3"

    def tearDown(self):
        self.tmp.cleanup()

    @patch('vidtext.core.transcode.run_subprocess_capture')
    def test_success(self, mock_run):
        def fake_ffmpeg(args, **kwargs):
            Path(args[-1]).write_bytes(b"audio")
            return _completed(args)
        mock_run.side_effect = fake_ffmpeg

        self.assertEqual(convert_to_mp3(self.src, self.dst), self.dst)
        args = mock_run.call_args[0][0]
        self.assertIn("-vn", args)
        self.assertEqual(args[args.index("-codec:a") + 1], "libmp3lame")

    @patch('vidtext.core.transcode.run_subprocess_capture')
    def test_encoder_error_keeps_context(self, mock_run):
        mock_run.return_value = _completed([], returncode=1, stderr="Invalid data found")
        with self.assertRaises(TranscodeError) as ctx:
            convert_to_mp3(self.src, self.dst)
        self.assertIn("Invalid data found", ctx.exception.message)

    @patch('vidtext.core.transcode.run_subprocess_capture')
    def test_partial_output_removed_on_error(self, mock_run):
        def failing_ffmpeg(args, **kwargs):
            Path(args[-1]).write_bytes(b"PARTIAL")
            return _completed(args, returncode=1, stderr="Conversion failed!")
        mock_run.side_effect = failing_ffmpeg

        with self.assertRaises(TranscodeError):
            convert_to_mp3(self.src, self.dst)
        self.assertFalse(self.dst.exists())

    @patch('vidtext.core.transcode.run_subprocess_capture')
    def test_partial_output_removed_on_timeout(self, mock_run):
        def slow_ffmpeg(args, **kwargs):
            Path(args[-1]).write_bytes(b"PARTIAL")
            raise subprocess.TimeoutExpired(args, kwargs.get('timeout'))
        mock_run.side_effect = slow_ffmpeg

        with self.assertRaises(TranscodeError):
            convert_to_mp3(self.src, self.dst, timeout=5)
        self.assertFalse(self.dst.exists())

    @patch('vidtext.core.transcode.run_subprocess_capture')
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("ffmpeg")
        with self.assertRaises(TranscodeError):
            convert_to_mp3(self.src, self.dst)


class TestSecurityUtils(unittest.TestCase):
    """Test subprocess safety helpers."""

    def test_rejects_string_command(self):
        with self.assertRaises(TypeError):
            run_subprocess("yt-dlp --version")

    @patch('vidtext.core.security_utils.subprocess.run')
    def test_shell_forced_off(self, mock_run):
        run_subprocess(["echo", "hi"], shell=True)
        self.assertFalse(mock_run.call_args.kwargs['shell'])

    def test_stderr_tail(self):
        self.assertEqual(stderr_tail(_completed([], stderr="")), "no output")
        self.assertEqual(len(stderr_tail(_completed([], stderr="x" * 1000))), 300)


class TestCleanup(unittest.TestCase):
    """Test temporary file removal."""

    def test_removes_existing_and_ignores_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            existing = Path(tmp) / "a.mp4"
            existing.write_bytes(b"x")
            remove_temp_files(existing, Path(tmp) / "missing.mp4")
            self.assertFalse(existing.exists())


class TestDiagnostics(unittest.TestCase):
    """Test external tool detection."""

    @patch('vidtext.core.diagnostics.run_subprocess_capture')
    def test_versions(self, mock_run):
        mock_run.return_value = _completed([], stdout="ffmpeg version 6.1\nbuilt with gcc\n")
        self.assertEqual(get_ffmpeg_version(), "ffmpeg version 6.1")

    @patch('vidtext.core.diagnostics.run_subprocess_capture')
    def test_not_installed(self, mock_run):
        mock_run.side_effect = FileNotFoundError("yt-dlp")
        self.assertEqual(get_ytdlp_version(), "Not installed")


class TestSqliteCacheStore(unittest.TestCase):
    """Test SQLite cache store operations."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = SqliteCacheStore(Path(self.tmp.name) / "cache.db")

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def test_get_missing(self):
        self.assertIsNone(self.store.get_sync("content/video/none"))

    def test_set_get(self):
        self.store.set_sync("content/video/abc", {'id': 'abc', 'text': 'hi'})
        self.assertEqual(self.store.get_sync("content/video/abc"), {'id': 'abc', 'text': 'hi'})

    def test_overwrite(self):
        self.store.set_sync("k", {'v': 1})
        self.store.set_sync("k", {'v': 2})
        self.assertEqual(self.store.get_sync("k"), {'v': 2})
        self.assertEqual(self.store.count(), 1)


class TestDeepgram(unittest.TestCase):
    """Test Deepgram request and response handling."""

    def test_extract_paragraphs(self):
        response = {'results': {'channels': [{'alternatives': [{
            'transcript': 'flat',
            'paragraphs': {'paragraphs': [
                {'sentences': [{'text': 'One.'}, {'text': 'Two.'}]},
                {'sentences': [{'text': 'Three.'}]},
            ]},
        }]}]}}
        self.assertEqual(extract_transcript_text(response), "One. Two.\n\nThree.")

    def test_extract_transcript_fallback(self):
        response = {'results': {'channels': [{'alternatives': [{'transcript': ' flat '}]}]}}
        self.assertEqual(extract_transcript_text(response), "flat")

    def test_extract_empty(self):
        self.assertEqual(extract_transcript_text({}), "")
        self.assertEqual(extract_transcript_text({'results': {'channels': []}}), "")

    @patch('vidtext.core.transcribe_deepgram.requests.post')
    def test_request_ok(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        mock_post.return_value.json.return_value = {'results': {}}
        self.assertEqual(request_transcription(b"mp3", "key"), {'results': {}})
        self.assertEqual(mock_post.call_args.kwargs['data'], b"mp3")
        self.assertEqual(mock_post.call_args.kwargs['headers']['Authorization'], "Token key")

    @patch('vidtext.core.transcribe_deepgram.requests.post')
    def test_request_error_status(self, mock_post):
        mock_post.return_value = MagicMock(status_code=500, text="boom")
        with self.assertRaises(TranscriptionFailed):
            request_transcription(b"mp3", "key")

    @patch('vidtext.core.transcribe_deepgram.time.sleep')
    @patch('vidtext.core.transcribe_deepgram.requests.post')
    def test_rate_limit_backoff(self, mock_post, mock_sleep):
        limited = MagicMock(status_code=429)
        ok = MagicMock(status_code=200)
        ok.json.return_value = {'results': {}}
        mock_post.side_effect = [limited, ok]
        self.assertEqual(request_transcription(b"mp3", "key"), {'results': {}})
        self.assertEqual(mock_sleep.call_count, 1)

    def test_requires_key(self):
        with self.assertRaises(ValueError):
            DeepgramTranscriber("")


if __name__ == "__main__":
    unittest.main()
