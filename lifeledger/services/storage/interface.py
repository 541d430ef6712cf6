"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep aggregation and scoring decoupled from any storage binding

One storage instance holds one kind of record (expenses, incomes or
budgets), the way a table or a worksheet would.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from lifeledger.errors import NotFoundError, ValidationError
from lifeledger.models.audit import AuditEvent
from lifeledger.models.records import Budget, Currency, Expense, Income

StoredRecord = Union[Expense, Income, Budget]


class RecordStorageInterface(ABC):
    """
    Abstract interface for money record storage.

    Any storage implementation (Google Sheets, PostgreSQL, memory)
    must implement these methods.
    """

    @abstractmethod
    async def save(self, record: StoredRecord) -> bool:
        """
        Insert or replace a record.

        Returns:
            True if saved successfully

        Raises:
            ValidationError: If the record breaks a model invariant
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_by_id(self, record_id: UUID) -> Optional[StoredRecord]:
        """
        Retrieve a record by its ID.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, record_id: UUID) -> bool:
        """
        Remove a record by ID.

        Returns:
            True if a record was removed
        """
        pass

    @abstractmethod
    async def find_by_user_and_date_range(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        currency: Optional[Currency] = None,
    ) -> list[StoredRecord]:
        """
        List a user's records, optionally inside an inclusive date range
        and for one currency.

        Returns:
            Matching records, newest first
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


def validate_for_write(record: BaseModel) -> None:
    """
    Re-run model validation before a write.

    Records are mutable, so a record can drift out of shape after it was
    built. Storage backends call this so that an invalid record is
    rejected with a ValidationError instead of being persisted.
    """
    try:
        type(record).model_validate(record.model_dump())
    except SchemaError as e:
        raise ValidationError(
            f"Refusing to save invalid {type(record).__name__}: {e}"
        ) from e


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "NotFoundError",
    "RecordStorageInterface",
    "StorageError",
    "StoredRecord",
    "validate_for_write",
]
