"""
Cleanup: delete ephemeral intermediates created only for a conversion.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_temp_files(*paths: Path):
    """
    Delete temporary files (success or failure path).
    Missing files are ignored; deletion errors are logged, not raised, so they
    never mask the error that triggered the cleanup.
    """
    for path in paths:
        try:
            path.unlink(missing_ok=True)
            logger.debug("Deleted: %s", path)
        except OSError as e:
            logger.warning("Failed to delete %s: %s", path, e)
