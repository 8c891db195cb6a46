"""I/O utility functions for ids, filenames and file cleanup."""

# This module is part of blessings.utils package

import re
import time
import uuid
from pathlib import Path
from typing import Any, Optional, Union

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\u4e00-\u9fff]")


def generate_id() -> str:
    """Generate a random identifier for batches and temp files."""
    return uuid.uuid4().hex


def safe_recipient_name(name: str) -> str:
    """
    Keep only ASCII letters, digits and CJK ideographs of a name.

    Args:
        name: Recipient name.

    Returns:
        Filesystem-safe name, possibly empty.
    """
    return _UNSAFE_NAME_CHARS.sub("", name)


def build_output_filename(recipient_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the output video filename for a recipient.

    Args:
        recipient_name: Recipient name.
        timestamp_ms: Millisecond timestamp (defaults to now).

    Returns:
        Filename like "blessing_张三_1707900000000.mp4".
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"blessing_{safe_recipient_name(recipient_name)}_{timestamp_ms}.mp4"


def remove_file(path: Optional[Union[str, Path]], logger: Any = None) -> bool:
    """
    Delete a file if it exists; failures are logged, not raised.

    Args:
        path: File to delete (None is ignored).
        logger: Optional logger for failures.

    Returns:
        True if a file was removed.
    """
    if not path:
        return False
    file_path = Path(path)
    try:
        if file_path.exists():
            file_path.unlink()
            return True
    except OSError as e:
        if logger is not None:
            logger.warning(f"Failed to delete {file_path}: {e}")
    return False
