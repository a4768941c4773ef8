"""Services package."""

from happyshare.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    GroupStorageInterface,
    InMemoryAuditStorage,
    InMemoryGroupStorage,
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "GroupStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryGroupStorage",
    "NotFoundError",
    "ReferentialIntegrityError",
    "StorageError",
]
