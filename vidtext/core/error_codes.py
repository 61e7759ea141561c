"""
Standardised error handling for vidtext.
"""

from vidtext.core.constants import ErrorCode


class PipelineError(Exception):
    """Raised when a pipeline run encounters a known error condition."""

    code = ErrorCode.UNEXPECTED

    def __init__(self, message: str, code: str | None = None):
        self.code = code or self.code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class FetchError(PipelineError):
    """Metadata or media retrieval failed."""
    code = ErrorCode.FETCH_FAILED


class TranscodeError(PipelineError):
    """Audio extraction failed."""
    code = ErrorCode.TRANSCODE_FAILED


class CaptionDownloadError(PipelineError):
    """Non-OK response (or transport failure) for a subtitle/caption resource."""
    code = ErrorCode.CAPTION_DOWNLOAD


class CaptionParseError(PipelineError):
    """Malformed caption payload. Recovered inside the parser."""
    code = ErrorCode.CAPTION_PARSE


class TranscriptionUnavailable(PipelineError):
    """No speech-to-text capability was provided to the pipeline."""
    code = ErrorCode.TRANSCRIPTION_UNAVAILABLE


class TranscriptionFailed(PipelineError):
    code = ErrorCode.TRANSCRIPTION_FAILED


class JobTimeout(PipelineError):
    code = ErrorCode.JOB_TIMEOUT


class UnknownPipelineFailure(PipelineError):
    code = ErrorCode.UNEXPECTED
