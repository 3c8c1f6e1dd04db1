"""Durable key-value byte stores.

The engine treats the durable medium as an opaque mapping of string keys
to bytes.  ``FileByteStore`` is the production implementation; the
memory store backs tests and throwaway sessions.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from pylaundry._crypto import aes_decrypt, aes_encrypt, parse_key_hex
from pylaundry.exceptions import LaundryStorageError

_logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class ByteStore(Protocol):
    """Structural interface of the durable medium.

    Implementations raise :class:`LaundryStorageError` on failure; the
    persistence gateway is responsible for turning that into a result.
    """

    async def read(self, key: str) -> bytes | None:
        ...

    async def write(self, key: str, data: bytes) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemoryByteStore:
    """Dict-backed byte store."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    async def read(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def write(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileByteStore:
    """One file per key under *root*, written atomically in a worker thread."""

    def __init__(self, root: Path | str, *, suffix: str = ".json") -> None:
        self._root = Path(root)
        self._suffix = suffix

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise LaundryStorageError(f"Invalid storage key {key!r}", key=key)
        return self._root / f"{key}{self._suffix}"

    def _read_sync(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise LaundryStorageError(f"Failed to read {path}: {exc}", key=key) from exc

    def _write_sync(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise LaundryStorageError(f"Failed to write {path}: {exc}", key=key) from exc

    def _delete_sync(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise LaundryStorageError(f"Failed to delete {path}: {exc}", key=key) from exc

    def _clear_sync(self) -> None:
        if not self._root.is_dir():
            return
        for path in self._root.glob(f"*{self._suffix}"):
            try:
                path.unlink()
            except OSError as exc:
                raise LaundryStorageError(f"Failed to delete {path}: {exc}") from exc

    async def read(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, data: bytes) -> None:
        _logger.debug("Writing %d bytes to %s", len(data), key)
        await asyncio.to_thread(self._write_sync, key, data)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)


class EncryptedByteStore:
    """Wrap another byte store and keep its values AES-encrypted at rest."""

    def __init__(self, inner: ByteStore, key_hex: str) -> None:
        self._inner = inner
        self._key = parse_key_hex(key_hex)

    async def read(self, key: str) -> bytes | None:
        blob = await self._inner.read(key)
        if blob is None:
            return None
        return aes_decrypt(blob, self._key)

    async def write(self, key: str, data: bytes) -> None:
        await self._inner.write(key, aes_encrypt(data, self._key))

    async def delete(self, key: str) -> None:
        await self._inner.delete(key)

    async def clear(self) -> None:
        await self._inner.clear()
