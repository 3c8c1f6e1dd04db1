"""Base models shared by every persisted entity.

Every entity inherits from :class:`LaundryBaseModel` which provides:

* ``alias_generator=to_camel`` so records serialize with the camelCase
  keys (``tenantId``, ``createdAt`` ...) used by the stored collections.
* A ``model_validator(mode="before")`` that drops ``null`` values so
  the field default is used, which lets older stored shapes load.
* Frozen instances: a change always produces a new model.

Partial updates use :class:`LaundryPatch` subclasses.  They declare the
updatable fields of an entity explicitly and reject anything else.
"""

from __future__ import annotations

import secrets
import time
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from pylaundry.exceptions import LaundryValidationError

M = TypeVar("M", bound=BaseModel)


def utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_tz_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


Timestamp = Annotated[datetime, AfterValidator(_ensure_tz_aware)]
"""Datetime that is always timezone-aware (naive values are taken as UTC)."""


def new_id(prefix: str) -> str:
    """Unique id: prefix, epoch milliseconds and a random suffix.

    The suffix keeps ids distinct when several entities are created
    within the same millisecond.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class LaundryBaseModel(BaseModel):
    """Base for persisted entities and their nested value objects."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}


class LaundryDraft(LaundryBaseModel):
    """Base for creation payloads: unknown fields are an error."""

    model_config = ConfigDict(extra="forbid")


class LaundryPatch(BaseModel):
    """Base for typed partial updates.

    Only fields explicitly set on the patch are applied.  Fields listed in
    ``clearable`` may be set to ``None`` to clear them; an explicit ``None``
    for any other field is rejected.
    """

    clearable: ClassVar[frozenset[str]] = frozenset()

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="after")
    def _reject_null_required(self) -> LaundryPatch:
        for name in sorted(self.model_fields_set - self.clearable):
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    def apply_to(self, entity: M, **extra: Any) -> M:
        """Return a re-validated copy of *entity* with the patch applied."""
        data = entity.model_dump()
        data.update(self.changes())
        data.update(extra)
        return coerce(type(entity), data)


def coerce(model: type[M], value: Any) -> M:
    """Validate *value* as *model*, raising :class:`LaundryValidationError`."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise LaundryValidationError(
            f"Invalid {model.__name__}: {exc.error_count()} validation error(s); {field}: {first.get('msg', '')}",
            field=field,
        ) from exc
