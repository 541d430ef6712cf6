"""Services package."""

from lifeledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStorage",
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "NotFoundError",
    "RecordStorageInterface",
    "StorageError",
]
