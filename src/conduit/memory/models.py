"""Memory record and the errors raised by the document store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Memory:
    """A single persisted note.

    The id is minted once here and never regenerated by the store. Both
    timestamps start at the same instant; ``save`` writes whatever is held in
    ``updated_at``, so callers bump it themselves via :meth:`touch`.
    """

    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    def touch(self, now: datetime | None = None) -> None:
        """Mark the record as modified."""
        self.updated_at = now or utcnow()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class MemoryStoreError(Exception):
    """Base class for document store failures."""


class MemoryIOError(MemoryStoreError):
    """Filesystem failure (permissions, missing path, disk errors)."""

    def __init__(self, path: Path, error: OSError) -> None:
        super().__init__(f"IO error on {path}: {error}")
        self.path = path
        self.error = error


class MemoryNotFoundError(MemoryStoreError):
    def __init__(self, memory_id: str) -> None:
        super().__init__(f"Memory not found: {memory_id}")
        self.memory_id = memory_id


class InvalidFormatError(MemoryStoreError):
    """Text could not be decoded into a Memory.

    ``field`` names the violated part: header, body, id, title, tags,
    created_at or updated_at.
    """

    def __init__(self, field: str, detail: str) -> None:
        super().__init__(f"Invalid memory format ({field}): {detail}")
        self.field = field
        self.detail = detail


class InvalidTimestampError(InvalidFormatError):
    """A timestamp line is missing or matches none of the accepted formats."""


def is_valid_id(memory_id: str) -> bool:
    """An id doubles as a filename stem inside the store directory."""
    if not memory_id or memory_id in (".", ".."):
        return False
    return not any(sep in memory_id for sep in ("/", "\\", "\0"))


def check_id(memory_id: str) -> None:
    if not is_valid_id(memory_id):
        raise InvalidFormatError("id", f"invalid id {memory_id!r}")
