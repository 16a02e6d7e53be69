# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-memory event store.

One ``EventStore`` instance is owned by the application and handed to the
request handlers. Records are immutable; every write replaces the stored value
under the store lock, so an update's read-merge-write cannot interleave with
another write.
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from eventdesk.errors import NotFoundError, ValidationError
from eventdesk.store.search import rank_events

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("title", "description", "date", "location", "organizer", "favorite")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EventRecord:
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    organizer: Optional[str] = None
    favorite: bool = False
    created_at: datetime = field(default_factory=_utcnow)


class EventMutation(BaseModel):
    """Partial event payload. Only explicitly set fields are applied."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    organizer: Optional[str] = None
    favorite: Optional[bool] = None

    @field_validator("title", "description", "date", "location", "organizer", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("date")
    @classmethod
    def _iso_date(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            return date.fromisoformat(v).isoformat()
        except ValueError:
            raise ValueError("date must be YYYY-MM-DD") from None

    def changes(self) -> Dict[str, object]:
        data = self.model_dump(exclude_unset=True)
        data.pop("id", None)
        if data.get("favorite") is None:
            data.pop("favorite", None)
        return data


def sort_events(records: Iterable[EventRecord]) -> List[EventRecord]:
    """Date descending (undated last), then title ascending, then id."""
    out = sorted(records, key=lambda r: ((r.title or "").casefold(), r.id))
    # Stable second pass; "" sorts after any ISO date when reversed.
    out.sort(key=lambda r: r.date or "", reverse=True)
    return out


def _require_id(event_id: str) -> str:
    eid = (event_id or "").strip()
    if not eid:
        raise ValidationError("Event id is required")
    return eid


class EventStore:
    def __init__(self) -> None:
        self._records: Dict[str, EventRecord] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._records

    def _snapshot(self) -> List[EventRecord]:
        with self._lock:
            return list(self._records.values())

    def _new_id(self) -> str:
        while True:
            eid = secrets.token_hex(4)
            if eid not in self._records:
                return eid

    def list(self) -> List[EventRecord]:
        return sort_events(self._snapshot())

    def get(self, event_id: str) -> Optional[EventRecord]:
        return self._records.get(_require_id(event_id))

    def create(self, mutation: Optional[EventMutation] = None) -> EventRecord:
        mutation = mutation or EventMutation()
        with self._lock:
            if mutation.id is not None:
                eid = _require_id(mutation.id)
                if eid in self._records:
                    raise ValidationError(f"Event id {eid!r} already exists")
            else:
                eid = self._new_id()
            rec = EventRecord(id=eid, created_at=_utcnow(), **mutation.changes())
            self._records[eid] = rec
        logger.info("Created event %s", eid)
        return rec

    def create_empty(self) -> EventRecord:
        return self.create(EventMutation())

    def update(self, event_id: str, mutation: EventMutation) -> EventRecord:
        eid = _require_id(event_id)
        with self._lock:
            current = self._records.get(eid)
            if current is None:
                raise NotFoundError(eid)
            merged = dataclasses.replace(current, **mutation.changes())
            self._records[eid] = merged
        logger.info("Updated event %s", eid)
        return merged

    def set_favorite(self, event_id: str, favorite: bool) -> EventRecord:
        return self.update(event_id, EventMutation(favorite=favorite))

    def delete(self, event_id: str) -> None:
        eid = _require_id(event_id)
        with self._lock:
            removed = self._records.pop(eid, None)
        if removed is not None:
            logger.info("Deleted event %s", eid)

    def search(self, query: Optional[str] = None) -> List[EventRecord]:
        if not (query or "").strip():
            return self.list()
        return rank_events(self.list(), query.strip())

    def load_seed(self, path: Path) -> int:
        """Create events from a YAML list of mappings. Returns how many were added."""
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
        if not isinstance(raw, list):
            raise ValidationError(f"Seed file {path} must contain a list of events")
        count = 0
        for item in raw:
            if not isinstance(item, dict):
                continue
            data = {k: (str(v) if k != "favorite" and v is not None else v) for k, v in item.items()}
            self.create(EventMutation(**data))
            count += 1
        logger.info("Seeded %d event(s) from %s", count, path)
        return count
