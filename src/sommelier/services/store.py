"""
Journal persistence.

The whole collection is the unit of storage: every mutation rewrites the
full JSON array through the configured backend.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from pydantic import TypeAdapter, ValidationError

from sommelier.config import STORAGE_KEY
from sommelier.errors import StoreCorrupted
from sommelier.models.wine import WineNote

logger = logging.getLogger(__name__)

_NOTES_ADAPTER = TypeAdapter(List[WineNote])


class StorageBackend(ABC):
    """Key-value storage holding one serialized blob."""

    @abstractmethod
    def load(self) -> Optional[bytes]:
        raise NotImplementedError

    @abstractmethod
    def save(self, data: bytes) -> None:
        raise NotImplementedError


class MemoryStorage(StorageBackend):
    def __init__(self, data: Optional[bytes] = None):
        self.data = data

    def load(self) -> Optional[bytes]:
        return self.data

    def save(self, data: bytes) -> None:
        self.data = data


class FileStorage(StorageBackend):
    """Stores the blob as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path, key: str = STORAGE_KEY):
        self.directory = Path(directory)
        self.path = self.directory / f"{key}.json"

    def load(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def save(self, data: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class SortCriterion(str, Enum):
    RECENT = "recent"
    RATING = "rating"
    VINTAGE = "vintage"
    REGION = "region"


def _vintage_key(note: WineNote):
    # Numeric years first (newest first once reversed), then everything else such as "N/V".
    vintage = note.vintage.strip()
    if vintage.isdecimal():
        return (1, int(vintage))
    return (0, 0)


class RecordStore:
    """Ordered, newest-first collection of wine notes kept in sync with storage."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._notes: List[WineNote] = []

    def __len__(self) -> int:
        return len(self._notes)

    def __iter__(self) -> Iterator[WineNote]:
        return iter(list(self._notes))

    @property
    def records(self) -> List[WineNote]:
        return list(self._notes)

    def load(self) -> List[WineNote]:
        """Read the persisted collection, replacing whatever is in memory."""
        raw = self.backend.load()
        if raw is None:
            self._notes = []
            return self.records

        try:
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, list):
                raise StoreCorrupted(
                    f"Stored journal must be a JSON array, found {type(data).__name__}"
                )
            self._notes = _NOTES_ADAPTER.validate_python(data)
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise StoreCorrupted(f"Stored journal could not be read: {e}") from e

        logger.info("Loaded %d wine note(s)", len(self._notes))
        return self.records

    def get(self, record_id: str) -> Optional[WineNote]:
        for note in self._notes:
            if note.id == record_id:
                return note
        return None

    def insert(self, record: WineNote) -> None:
        self._notes.insert(0, record)
        self._persist()

    def replace(self, record_id: str, updated: WineNote) -> bool:
        """Swap in ``updated`` for the note with ``record_id``. Returns False if there is none."""
        for index, note in enumerate(self._notes):
            if note.id == record_id:
                if updated.id != record_id:
                    updated = updated.model_copy(update={"id": record_id})
                self._notes[index] = updated
                self._persist()
                return True
        return False

    def remove(self, record_id: str) -> bool:
        remaining = [note for note in self._notes if note.id != record_id]
        if len(remaining) == len(self._notes):
            return False
        self._notes = remaining
        self._persist()
        return True

    def sorted_view(self, criterion=SortCriterion.RECENT) -> List[WineNote]:
        criterion = SortCriterion(criterion)
        notes = list(self._notes)
        if criterion is SortCriterion.RATING:
            return sorted(notes, key=lambda n: n.rating or 0, reverse=True)
        if criterion is SortCriterion.VINTAGE:
            return sorted(notes, key=_vintage_key, reverse=True)
        if criterion is SortCriterion.REGION:
            return sorted(notes, key=lambda n: n.region.casefold())
        return sorted(notes, key=lambda n: n.created_at, reverse=True)

    def _persist(self) -> None:
        payload = [note.model_dump(mode="json", by_alias=True, exclude_none=True) for note in self._notes]
        self.backend.save(json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8"))
        logger.debug("Persisted %d wine note(s)", len(self._notes))
