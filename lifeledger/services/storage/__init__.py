"""
Storage Services Package

Provides abstract interfaces and concrete implementations for record storage.
Google Sheets is the persistent backend; the in-memory backend serves tests
and local runs.
"""

from lifeledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
    StoredRecord,
    validate_for_write,
)
from lifeledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)
from lifeledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    "StoredRecord",
    "validate_for_write",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStorage",
]
