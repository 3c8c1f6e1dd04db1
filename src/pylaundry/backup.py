"""Backup document format.

A backup is a single JSON object::

    {
      "version": "1.0.0",
      "timestamp": "2026-01-31T10:00:00+00:00",
      "data": {"orders": [...], "inventory": [...], "drivers": [...], "routes": [...]}
    }

Collections are stored exactly as persisted (camelCase records).
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from pylaundry._constants import BACKUP_VERSION
from pylaundry.exceptions import LaundryValidationError
from pylaundry.models._base import Timestamp, utcnow


class BackupData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    orders: list[dict[str, Any]]
    inventory: list[dict[str, Any]]
    drivers: list[dict[str, Any]]
    routes: list[dict[str, Any]]


class BackupDocument(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    version: str = Field(min_length=1)
    timestamp: Timestamp = Field(default_factory=utcnow)
    data: BackupData

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False)


def new_backup(
    *,
    orders: list[dict[str, Any]],
    inventory: list[dict[str, Any]],
    drivers: list[dict[str, Any]],
    routes: list[dict[str, Any]],
) -> BackupDocument:
    return BackupDocument(
        version=BACKUP_VERSION,
        data=BackupData(orders=orders, inventory=inventory, drivers=drivers, routes=routes),
    )


def parse_backup(text: str | bytes) -> BackupDocument:
    """Parse and validate a backup document.

    Raises :class:`LaundryValidationError` on malformed JSON or a missing
    section.
    """
    try:
        return BackupDocument.model_validate_json(text)
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise LaundryValidationError(f"Invalid backup format: {field}: {first.get('msg', '')}", field=field) from exc
