"""Custom exception hierarchy for pylaundry."""

from __future__ import annotations


class LaundryError(Exception):
    """Base exception for all pylaundry errors."""


class LaundryConfigError(LaundryError):
    """Invalid or missing configuration."""


class LaundryValidationError(LaundryError):
    """A required field is missing or malformed.

    Raised before any I/O happens, so a failed validation never leaves
    a partially written collection behind.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class LaundryNotFoundError(LaundryError):
    """An update, delete or assignment referenced an unknown id."""

    def __init__(self, message: str, *, entity_id: str = "") -> None:
        self.entity_id = entity_id
        super().__init__(message)


class LaundryPersistenceError(LaundryError):
    """A whole-collection write was rejected by the persistence gateway."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class LaundryStorageError(LaundryError):
    """Durable byte-store failure (I/O, permissions, missing directory)."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class LaundryCryptoError(LaundryStorageError):
    """Encryption or decryption of a stored value failed."""
