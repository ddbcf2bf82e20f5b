"""Crash and concurrency safe publishing of derived files.

Several worker processes may build assets into the same directory at the same
time. Files are first written to a temporary name unique to the writing
process and then renamed onto their final name, so a reader only ever sees a
missing file or a complete one.
"""

# Standard library imports
import logging
import os
import time
from pathlib import Path
from typing import Union

# Local imports
from boiler.core.errors import WriteError

PUBLISHED_FILE_MODE = 0o644


def temp_path_for(destination: Path) -> Path:
    """Build a temporary sibling path for a destination file.

    The name is salted with the process id and a nanosecond timestamp so that
    concurrent writers never share a temporary file.

    Args:
        destination: Final path of the file being published

    Returns:
        Path in the same directory as the destination
    """
    return destination.with_name(
        f".{destination.name}.{os.getpid()}.{time.time_ns()}.tmp"
    )


def publish(content: bytes, destination: Union[str, Path]) -> Path:
    """Atomically write content to a destination path.

    Args:
        content: Final bytes of the file
        destination: Path to publish to; its directory must exist

    Returns:
        The destination path

    Raises:
        WriteError: If the temporary file could not be written, or the rename
            failed and nothing exists at the destination
    """
    destination = Path(destination)
    tmp_path = temp_path_for(destination)

    try:
        with open(tmp_path, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, PUBLISHED_FILE_MODE)
    except OSError as e:
        _discard(tmp_path)
        raise WriteError(
            f"failed to write temporary file for {destination}: {e}", destination
        ) from e

    try:
        os.replace(tmp_path, destination)
    except OSError as e:
        _discard(tmp_path)
        if destination.is_file():
            # Another process published the same content first
            logging.debug(f"Lost publish race for {destination}, keeping existing")
            return destination
        raise WriteError(f"failed to publish {destination}: {e}", destination) from e

    return destination


def publish_if_changed(content: bytes, destination: Union[str, Path]) -> bool:
    """Publish content unless the destination already holds exactly those bytes.

    Used for files whose names are not content addressed (bundle intermediates,
    favicons), so repeated builds leave them untouched.

    Args:
        content: Final bytes of the file
        destination: Path to publish to

    Returns:
        True if the file was written, False if it was already up to date

    Raises:
        WriteError: If publishing failed
    """
    destination = Path(destination)
    try:
        if destination.read_bytes() == content:
            return False
    except OSError:
        pass  # Missing or unreadable, publish fresh
    publish(content, destination)
    return True


def _discard(tmp_path: Path) -> None:
    """Remove a temporary file if it is still around."""
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove temporary file {tmp_path}: {e}")
