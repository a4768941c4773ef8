"""
Storage Services Package

Provides abstract interfaces and an in-memory implementation for group
ledger data. Designed so a database-backed store can be dropped in later.
"""

from happyshare.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    GroupStorageInterface,
    NotFoundError,
    ReferentialIntegrityError,
    StorageError,
)
from happyshare.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryGroupStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "GroupStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "ReferentialIntegrityError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryGroupStorage",
]
