"""
In-Memory Storage Implementation

Keeps records in a dict. Used by tests and for local experiments;
it follows the same interface as the Google Sheets backend.

Records are copied on the way in and out, so a caller mutating a
record it fetched does not change what is stored until it saves.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from lifeledger.aggregation import filter_records, record_date
from lifeledger.models.audit import AuditEvent
from lifeledger.models.records import Currency
from lifeledger.services.storage.interface import (
    AuditStorageInterface,
    RecordStorageInterface,
    StoredRecord,
    validate_for_write,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Dict-backed record storage."""

    def __init__(self, records: Optional[Iterable[StoredRecord]] = None):
        self._records: dict[UUID, StoredRecord] = {}
        for record in records or []:
            self._records[record.id] = record.model_copy(deep=True)

    async def save(self, record: StoredRecord) -> bool:
        validate_for_write(record)
        self._records[record.id] = record.model_copy(deep=True)
        return True

    async def get_by_id(self, record_id: UUID) -> Optional[StoredRecord]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def delete(self, record_id: UUID) -> bool:
        return self._records.pop(record_id, None) is not None

    async def find_by_user_and_date_range(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        currency: Optional[Currency] = None,
    ) -> list[StoredRecord]:
        owned = [r for r in self._records.values() if r.user_id == user_id]
        matches = filter_records(owned, start_date, end_date, currency)
        matches.sort(key=lambda r: record_date(r) or date.min, reverse=True)
        return [r.model_copy(deep=True) for r in matches]


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed, append-only audit storage."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
