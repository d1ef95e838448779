"""
Commit marker persistence for ecscicd.

The marker is a plain text file inside the working copy holding the commit
that was last built. Writes are atomic (write to temp, then rename).
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from ..exit_codes import MarkerError

logger = logging.getLogger(__name__)

MARKER_FILENAME = ".last_commit"


class MarkerStore:
    """
    Reads and writes the ``.last_commit`` marker of a working copy.

    Example:
        store = MarkerStore()
        store.write("repos/app", "abc123")
        store.read("repos/app")  # "abc123"
    """

    def __init__(self, filename: str = MARKER_FILENAME):
        self.filename = filename

    def path_for(self, working_copy: Union[str, Path]) -> Path:
        """Location of the marker inside ``working_copy``."""
        return Path(working_copy) / self.filename

    def read(self, working_copy: Union[str, Path]) -> Optional[str]:
        """
        Read the stored commit.

        Returns:
            The trimmed commit id, or None when no marker has been written
        """
        path = self.path_for(working_copy)
        try:
            content = path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except OSError as e:
            raise MarkerError(f"failed to read state file {path}: {e}") from e

        commit = content.strip()
        return commit or None

    def write(self, working_copy: Union[str, Path], commit: str) -> None:
        """Atomically replace the marker with ``commit``."""
        path = self.path_for(working_copy)
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(
                dir=path.parent,
                prefix=f"{path.name}.",
                suffix=".tmp"
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(commit.strip())
            os.chmod(temp_path, 0o644)

            # Atomic rename
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            raise MarkerError(f"failed to write state file {path}: {e}") from e

        logger.debug(f"Marker {path} now at {commit.strip()}")
