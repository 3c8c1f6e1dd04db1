"""Helpers for safe debug logging.

Orders and drivers carry customer contact details.  This module masks
those fields before records are emitted in DEBUG logs.  Phone numbers
keep their last digits and e-mail addresses their domain, so a support
log can still tell records apart; addresses and locations are dropped.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

# Keys are compared after lower-casing and dropping underscores, so both
# ``customer_phone`` and ``customerPhone`` match.
_PHONE_KEYS: frozenset[str] = frozenset({"customerphone", "phone"})
_EMAIL_KEYS: frozenset[str] = frozenset({"email"})
_HIDDEN_KEYS: frozenset[str] = frozenset(
    {
        "deliveryaddress",
        "address",
        "currentlocation",
        "encryptionkey",
    }
)

_SENSITIVE_KEYS: frozenset[str] = _PHONE_KEYS | _EMAIL_KEYS | _HIDDEN_KEYS

_PHONE_TAIL = 4


def _normalize_key(key: str) -> str:
    return key.replace("_", "").lower()


def mask_phone(value: Any) -> str:
    """``"+1 555 0100"`` -> ``"***0100"``.  Short numbers are fully hidden."""
    digits = "".join(ch for ch in str(value) if ch.isdigit())
    if len(digits) <= _PHONE_TAIL:
        return "***"
    return "***" + digits[-_PHONE_TAIL:]


def mask_email(value: Any) -> str:
    """``"bo@example.com"`` -> ``"b***@example.com"``."""
    local, sep, domain = str(value).rpartition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}***@{domain}"


def _mask(key: str, value: Any) -> Any:
    if value is None or value == "":
        return value
    normalized = _normalize_key(key)
    if normalized in _PHONE_KEYS:
        return mask_phone(value)
    if normalized in _EMAIL_KEYS:
        return mask_email(value)
    return "<redacted>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if _normalize_key(key) in _SENSITIVE_KEYS:
                redacted[key] = _mask(key, v)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
