"""
JSON file storage for published entry keys.

Persists a bounded, ordered list of identity keys between runs to
avoid posting the same entry twice.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

# Maximum number of keys kept on disk
SEEN_CAP = 600

SEEN_FILENAME = "seen.json"

# Older releases kept only the last published link in this file
LEGACY_FILENAME = "last_seen.txt"


class LoadStatus(str, Enum):
    """How the seen state was obtained."""

    LOADED = "loaded"
    MISSING = "missing"
    CORRUPT = "corrupt"
    LEGACY = "legacy"


class SeenSet:
    """
    Ordered set of identity keys.

    Keeps insertion order so the oldest keys can be evicted first.
    """

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: dict[str, None] = dict.fromkeys(keys)

    def add(self, key: str) -> None:
        """Add a key; re-adding an existing key keeps its position."""
        self._keys.setdefault(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"SeenSet({list(self._keys)!r})"


@dataclass
class SeenLoad:
    """
    Result of loading the seen state.

    Attributes
    ----------
    keys : SeenSet
        Loaded identity keys, empty unless status is LOADED or LEGACY.
    status : LoadStatus
        Where the keys came from.
    """

    keys: SeenSet = field(default_factory=SeenSet)
    status: LoadStatus = LoadStatus.MISSING


class SeenStore:
    """
    File-backed store of published identity keys.

    A single process is assumed to own the state directory; concurrent
    runs against the same directory are not coordinated.
    """

    def __init__(self, state_dir: str | Path, cap: int = SEEN_CAP):
        """
        Initialize the store.

        Parameters
        ----------
        state_dir : str | Path
            Directory holding the state files.
        cap : int
            Maximum number of keys written by save().
        """
        self.state_dir = Path(state_dir)
        self.cap = cap

    @property
    def seen_path(self) -> Path:
        return self.state_dir / SEEN_FILENAME

    @property
    def legacy_path(self) -> Path:
        return self.state_dir / LEGACY_FILENAME

    def _ensure_dir(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> SeenLoad:
        """
        Load published keys from disk.

        Never raises on missing or unreadable content; the returned status
        tells which fallback applied.

        Returns
        -------
        SeenLoad
            The keys and how they were obtained.
        """
        self._ensure_dir()

        if not self.seen_path.exists():
            return self._load_legacy()

        try:
            data = json.loads(self.seen_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.seen_path, e)
            return SeenLoad(status=LoadStatus.CORRUPT)

        if not isinstance(data, list) or not all(isinstance(k, str) for k in data):
            logger.warning(
                "Ignoring state file %s: expected a JSON array of strings",
                self.seen_path,
            )
            return SeenLoad(status=LoadStatus.CORRUPT)

        keys = SeenSet(data)
        logger.debug("Loaded %d seen key(s) from %s", len(keys), self.seen_path)
        return SeenLoad(keys=keys, status=LoadStatus.LOADED)

    def _load_legacy(self) -> SeenLoad:
        """Import the single last-seen link written by older releases."""
        if not self.legacy_path.exists():
            return SeenLoad(status=LoadStatus.MISSING)

        try:
            raw = self.legacy_path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable legacy state %s: %s", self.legacy_path, e)
            return SeenLoad(status=LoadStatus.CORRUPT)

        # The link may have been written raw or as a JSON string
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = raw

        if not isinstance(value, str) or not value.strip():
            return SeenLoad(status=LoadStatus.MISSING)

        logger.info("Imported legacy last-seen link from %s", self.legacy_path)
        return SeenLoad(keys=SeenSet([value.strip()]), status=LoadStatus.LEGACY)

    def save(self, keys: Iterable[str]) -> list[str]:
        """
        Persist the most recent keys, replacing the state file.

        Parameters
        ----------
        keys : Iterable[str]
            Keys in insertion order, oldest first.

        Returns
        -------
        list[str]
            The keys actually written.

        Raises
        ------
        OSError
            If the state file cannot be written.
        """
        self._ensure_dir()

        unique = list(dict.fromkeys(keys))
        trimmed = unique[-self.cap :] if self.cap > 0 else []

        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_dir, prefix=".seen-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(trimmed, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.seen_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Saved %d seen key(s) to %s", len(trimmed), self.seen_path)
        return trimmed
