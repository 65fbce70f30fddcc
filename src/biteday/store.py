"""Persistence — catch records in a local JSON key-value file."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Protocol

from biteday.models import Record

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class StoreError(Exception):
    """The store could not be read at all."""


class UnsupportedSchemaError(StoreError):
    """The stored collection was written by a newer schema version."""


class RecordStore(Protocol):
    async def initialize(self) -> None: ...

    async def load(self) -> list[Record]: ...

    async def save(self, records: Iterable[Record]) -> bool: ...

    async def clear(self) -> bool: ...


def encode_records(records: Iterable[Record]) -> dict[str, Any]:
    return {"version": SCHEMA_VERSION, "records": [r.to_dict() for r in records]}


def _newer_version(value: Any) -> int | None:
    if isinstance(value, dict):
        version = value.get("version")
        if isinstance(version, int) and version > SCHEMA_VERSION:
            return version
    return None


def decode_records(value: Any) -> list[Record]:
    """Decode a stored collection; anything malformed decodes to an empty list.

    Accepts the versioned envelope ``{"version": 1, "records": [...]}`` and the
    legacy bare list written before versioning (migrated on the next save).

    Raises:
        UnsupportedSchemaError: If the envelope carries a newer version.
    """
    newer = _newer_version(value)
    if newer is not None:
        raise UnsupportedSchemaError(
            f"records use schema version {newer}, this build reads up to {SCHEMA_VERSION}"
        )
    if value is None:
        return []
    if isinstance(value, list):
        items = value
    elif isinstance(value, dict) and isinstance(value.get("records"), list):
        version = value.get("version")
        if not isinstance(version, int):
            logger.warning("unsupported record schema version %r, ignoring", version)
            return []
        items = value["records"]
    else:
        logger.warning("stored records have unexpected shape, ignoring")
        return []
    try:
        return [Record.from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning("stored records are corrupted, ignoring: %r", e)
        return []


class JsonFileStore:
    """A single JSON object file used as a key-value map.

    The record collection lives under ``key``. Writes replace the file
    atomically (temp file + ``os.replace``); file I/O runs in a worker thread.
    """

    def __init__(self, path: Path, key: str = "catch_entries") -> None:
        self.path = Path(path)
        self.key = key
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        try:
            await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"cannot create {self.path.parent}: {e}") from e
        self._initialized = True

    async def load(self) -> list[Record]:
        """Load every stored record.

        Raises:
            StoreError: If the file exists but cannot be read, or holds records
                written by a newer schema version.
        """
        await self.initialize()
        try:
            mapping = await asyncio.to_thread(self._read)
        except OSError as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e
        return decode_records(mapping.get(self.key))

    async def save(self, records: Iterable[Record]) -> bool:
        """Overwrite the stored collection. Returns False if the write failed.

        A collection written by a newer schema version is never overwritten.
        """
        payload = encode_records(records)
        try:
            await self.initialize()
            await asyncio.to_thread(self._update, payload)
        except (OSError, StoreError, TypeError, ValueError) as e:
            logger.warning("saving records to %s failed: %s", self.path, e)
            return False
        return True

    async def clear(self) -> bool:
        try:
            await self.initialize()
            await asyncio.to_thread(self._update, None)
        except (OSError, StoreError) as e:
            logger.warning("clearing %s failed: %s", self.path, e)
            return False
        return True

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("%s is not valid UTF-8, treating as empty: %s", self.path, e)
            return {}
        if not text.strip():
            return {}
        try:
            mapping = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("%s is not valid JSON, treating as empty: %s", self.path, e)
            return {}
        if not isinstance(mapping, dict):
            logger.warning("%s does not hold a JSON object, treating as empty", self.path)
            return {}
        return mapping

    def _update(self, value: Any) -> None:
        mapping = self._read()
        newer = _newer_version(mapping.get(self.key))
        if value is not None and newer is not None:
            raise UnsupportedSchemaError(
                f"refusing to overwrite records with schema version {newer}"
            )
        if value is None:
            mapping.pop(self.key, None)
        else:
            mapping[self.key] = value
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(mapping, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
