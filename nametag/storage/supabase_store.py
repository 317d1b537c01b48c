"""Supabase-backed PersonStore (``people`` + ``conversation_entries`` tables)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from supabase import Client, create_client

from nametag.config import settings
from nametag.exceptions import PersistenceError
from nametag.storage.models import ConversationEntry, PersonRecord
from nametag.storage.store import PersonStore

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """Create and return a Supabase client from settings."""
    return create_client(settings.supabase_url, settings.supabase_key)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _entry_row(person_id: str, entry: ConversationEntry) -> dict[str, Any]:
    return {
        "person_id": person_id,
        "date": entry.date.isoformat(),
        "summary": entry.summary,
        "topics": list(entry.topics),
        "key_points": list(entry.key_points),
        "duration": entry.duration_seconds,
    }


class SupabasePersonStore(PersonStore):
    """PersonStore over the schema in ``supabase/schema.sql``.

    Conversation entries are only ever inserted; an entry whose timestamp is
    already stored for the person is skipped, which keeps ``store`` idempotent.
    """

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _to_record(self, row: dict[str, Any]) -> PersonRecord:
        entries = (
            self.client.table("conversation_entries")
            .select("*")
            .eq("person_id", row["id"])
            .order("date")
            .execute()
        )
        history = [
            ConversationEntry(
                date=_parse_ts(e["date"]) or datetime.now(timezone.utc),
                summary=e.get("summary") or "",
                topics=tuple(e.get("topics") or ()),
                key_points=tuple(e.get("key_points") or ()),
                duration_seconds=e.get("duration"),
            )
            for e in entries.data
        ]
        return PersonRecord(
            name=row["name"],
            speaker_id=row.get("speaker_id") or "",
            voice_reference=row.get("voice_reference"),
            conversation_history=history,
            last_met=_parse_ts(row.get("last_met")),
        )

    def get(self, speaker_id_or_name: str) -> PersonRecord | None:
        result = (
            self.client.table("people")
            .select("*")
            .eq("speaker_id", speaker_id_or_name)
            .limit(1)
            .execute()
        )
        if result.data:
            return self._to_record(result.data[0])
        return self.find_by_name(speaker_id_or_name)

    def find_by_name(self, name: str) -> PersonRecord | None:
        result = self.client.table("people").select("*").ilike("name", name).limit(1).execute()
        if not result.data:
            return None
        return self._to_record(result.data[0])

    def store(self, record: PersonRecord) -> None:
        try:
            self._store(record)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(record.name, exc) from exc
        logger.info("Stored %s (speaker %s)", record.name, record.speaker_id)

    def _store(self, record: PersonRecord) -> None:
        existing = (
            self.client.table("people").select("id").ilike("name", record.name).limit(1).execute()
        )
        fields: dict[str, Any] = {
            "speaker_id": record.speaker_id,
            "last_met": (record.last_met or datetime.now(timezone.utc)).isoformat(),
        }
        if record.voice_reference is not None:
            fields["voice_reference"] = record.voice_reference

        if existing.data:
            person_id = str(existing.data[0]["id"])
            self.client.table("people").update(fields).eq("id", person_id).execute()
        else:
            inserted = (
                self.client.table("people").insert({"name": record.name, **fields}).execute()
            )
            if not inserted.data:
                raise PersistenceError(record.name, Exception("insert returned no row"))
            person_id = str(inserted.data[0]["id"])

        if not record.conversation_history:
            return

        stored = (
            self.client.table("conversation_entries")
            .select("date")
            .eq("person_id", person_id)
            .execute()
        )
        stored_dates = {_parse_ts(row["date"]) for row in stored.data}
        rows = [
            _entry_row(person_id, entry)
            for entry in record.conversation_history
            if entry.date not in stored_dates
        ]
        if rows:
            self.client.table("conversation_entries").insert(rows).execute()

    def list(self) -> list[PersonRecord]:
        result = (
            self.client.table("people")
            .select("*")
            .order("last_met", desc=True)
            .execute()
        )
        return [self._to_record(row) for row in result.data]
