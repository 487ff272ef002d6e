"""
File-backed key-value storage.

Each key is stored as one file ``<data_dir>/<key>.json`` holding the raw
serialized value.  Writes go through a temporary file and os.replace so
a crash mid-write never leaves a truncated value behind.
"""

import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class LocalStore:
    """
    Minimal get/set/remove store for client-local state.

    The directory is created lazily on the first write.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding one file per key
        """
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        """Return the file path backing a key."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        """
        Read the raw value for key.

        Returns:
            Stored text, or None if the key is absent or unreadable
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        """Write the raw value for key, replacing any previous value."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        """Delete key; absent keys are ignored."""
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
