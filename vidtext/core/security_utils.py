"""
Security utilities for vidtext.
- Safe subprocess execution (argument arrays only)
- Tail-trimming of tool output for error messages
"""

import subprocess
import logging

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 300


# ── Subprocess safety ─────────────────────────────────────────────────

def run_subprocess(args: list[str], **kwargs) -> subprocess.CompletedProcess:
    """
    Execute a subprocess using argument arrays only.
    shell=True is explicitly forbidden.
    """
    if not isinstance(args, (list, tuple)):
        raise TypeError("Subprocess args must be a list/tuple, not a string")

    # Force shell=False; drop any caller-supplied value
    kwargs.pop('shell', None)

    logger.debug("Running subprocess: %s", ' '.join(str(a) for a in args))
    return subprocess.run(args, shell=False, **kwargs)


def run_subprocess_capture(args: list[str], timeout: float | None = 300,
                           **kwargs) -> subprocess.CompletedProcess:
    """Run subprocess and capture stdout/stderr."""
    return run_subprocess(
        args,
        capture_output=True,
        text=True,
        timeout=timeout,
        **kwargs,
    )


def stderr_tail(result: subprocess.CompletedProcess) -> str:
    """Last few hundred characters of stderr; verbose tools put the cause at the end."""
    stderr = (result.stderr or "").strip()
    return stderr[-_STDERR_TAIL_CHARS:] if stderr else "no output"
