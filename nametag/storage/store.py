"""PersonStore contract plus in-memory and JSON-file implementations."""

from __future__ import annotations

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from nametag.exceptions import PersistenceError
from nametag.session_config import StoreBackend
from nametag.storage.models import PersonRecord, merge_history, normalize_name

if TYPE_CHECKING:
    from nametag.config import Settings

logger = logging.getLogger(__name__)

STORAGE_VERSION = "1.0.0"


class PersonStore(ABC):
    """Durable record of people and their conversation history."""

    @abstractmethod
    def get(self, speaker_id_or_name: str) -> PersonRecord | None:
        """Look up a person by speaker ID or (case-insensitive) name."""

    @abstractmethod
    def find_by_name(self, name: str) -> PersonRecord | None:
        """Look up a person by name, case-insensitively."""

    @abstractmethod
    def store(self, record: PersonRecord) -> None:
        """Upsert *record*, merging its history into any stored one.

        Raises:
            PersistenceError: If the write fails.
        """

    @abstractmethod
    def list(self) -> list[PersonRecord]:
        """Return every stored person, most recently met first."""


def _merge_into(existing: PersonRecord | None, record: PersonRecord) -> PersonRecord:
    merged = copy.deepcopy(record)
    if existing is None:
        return merged
    if existing.speaker_id != record.speaker_id:
        logger.info(
            "Updated %s's speaker ID: %s -> %s", record.name, existing.speaker_id, record.speaker_id
        )
    merged.conversation_history = merge_history(
        existing.conversation_history, record.conversation_history
    )
    if merged.voice_reference is None:
        merged.voice_reference = existing.voice_reference
    if merged.last_met is None:
        merged.last_met = existing.last_met
    return merged


def _sort_key(record: PersonRecord) -> float:
    return record.last_met.timestamp() if record.last_met else float("-inf")


class InMemoryPersonStore(PersonStore):
    """Process-local store; records are copied in and out."""

    def __init__(self, records: list[PersonRecord] | None = None) -> None:
        self._lock = threading.Lock()
        self._people: dict[str, PersonRecord] = {}
        for record in records or []:
            self.store(record)

    def get(self, speaker_id_or_name: str) -> PersonRecord | None:
        wanted = normalize_name(speaker_id_or_name)
        with self._lock:
            for person in self._people.values():
                if person.speaker_id == speaker_id_or_name or person.key == wanted:
                    return copy.deepcopy(person)
        return None

    def find_by_name(self, name: str) -> PersonRecord | None:
        with self._lock:
            person = self._people.get(normalize_name(name))
            return copy.deepcopy(person) if person else None

    def store(self, record: PersonRecord) -> None:
        with self._lock:
            self._people[record.key] = _merge_into(self._people.get(record.key), record)
        logger.info("Stored %s (speaker %s)", record.name, record.speaker_id)

    def list(self) -> list[PersonRecord]:
        with self._lock:
            people = [copy.deepcopy(p) for p in self._people.values()]
        return sorted(people, key=_sort_key, reverse=True)


class JsonFilePersonStore(PersonStore):
    """Stores people in ``<data_dir>/memories.json``.

    The whole file is read and rewritten on every store; fine for the handful
    of people one user meets.
    """

    def __init__(self, data_dir: str | Path = "./data") -> None:
        self.path = Path(data_dir) / "memories.json"
        self._lock = threading.Lock()

    def _read(self) -> dict[str, PersonRecord]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            people: dict[str, Any] = data.get("people") or {}
            records = [PersonRecord.from_dict(p) for p in people.values()]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(str(self.path), exc) from exc
        return {r.key: r for r in records}

    def _write(self, people: dict[str, PersonRecord]) -> None:
        payload = {
            "people": {key: person.to_dict() for key, person in people.items()},
            "version": STORAGE_VERSION,
            "last_modified": datetime.now(timezone.utc).isoformat(),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, speaker_id_or_name: str) -> PersonRecord | None:
        wanted = normalize_name(speaker_id_or_name)
        with self._lock:
            for person in self._read().values():
                if person.speaker_id == speaker_id_or_name or person.key == wanted:
                    return person
        return None

    def find_by_name(self, name: str) -> PersonRecord | None:
        with self._lock:
            return self._read().get(normalize_name(name))

    def store(self, record: PersonRecord) -> None:
        with self._lock:
            people = self._read()
            people[record.key] = _merge_into(people.get(record.key), record)
            try:
                self._write(people)
            except OSError as exc:
                raise PersistenceError(record.name, exc) from exc
        logger.info("Stored %s (speaker %s)", record.name, record.speaker_id)

    def list(self) -> list[PersonRecord]:
        with self._lock:
            people = list(self._read().values())
        return sorted(people, key=_sort_key, reverse=True)


def build_person_store(settings: Settings) -> PersonStore:
    """Create the store selected by ``settings.store_backend``."""
    backend = StoreBackend(settings.store_backend)

    if backend is StoreBackend.SUPABASE:
        from nametag.storage.supabase_store import SupabasePersonStore

        return SupabasePersonStore()
    if backend is StoreBackend.MEMORY:
        return InMemoryPersonStore()
    return JsonFilePersonStore(settings.data_dir)
