"""Shared write path for the ledgers: save, and audit the save if it fails."""

from typing import Optional, Union
from uuid import UUID

from lifeledger.audit import AuditLogger
from lifeledger.models.records import Budget, MoneyRecord
from lifeledger.services.storage import RecordStorageInterface, StorageError


async def persist_record(
    storage: RecordStorageInterface,
    record: Union[MoneyRecord, Budget],
    audit_logger: Optional[AuditLogger] = None,
    correlation_id: Optional[UUID] = None,
) -> None:
    """Save a record. A StorageError is logged as SAVE_FAILED and re-raised."""
    try:
        await storage.save(record)
    except StorageError as e:
        if audit_logger:
            await audit_logger.log_save_failed(
                entity_type=type(record).__name__.lower(),
                entity_id=record.id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
        raise
