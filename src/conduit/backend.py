"""Backend facade consumed by the HTTP and desktop layers.

Resolves the memory directory and hands out a single ``MemoryStore``. Store
exceptions propagate untouched; outer layers translate them into their own
response envelopes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from conduit.config import DEFAULT_MEMORY_DIR, ConduitConfig
from conduit.memory.models import Memory
from conduit.memory.store import MemoryStore

logger = logging.getLogger(__name__)


class ConduitBackend:
    """Entry point for memory operations."""

    def __init__(self, memory_path: Path | str | None = None, *, self_heal: bool = True) -> None:
        if memory_path is not None:
            path = Path(memory_path)
            logger.info("Using provided memory path: %s", path)
        else:
            path = DEFAULT_MEMORY_DIR
            logger.info("Using default memory path: %s", path)
        self._store = MemoryStore(path, self_heal=self_heal)

    @classmethod
    def from_config(cls, config: ConduitConfig) -> ConduitBackend:
        return cls(config.memory_dir, self_heal=config.self_heal)

    @property
    def store(self) -> MemoryStore:
        return self._store

    def create_memory(self, title: str, content: str, tags: list[str] | None = None) -> str:
        """Mint and persist a new memory. Returns its id."""
        memory = Memory(title=title, content=content, tags=list(tags or []))
        self._store.save(memory)
        return memory.id

    def update_memory(
        self,
        memory_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> Memory:
        """Change the given fields, bump ``updated_at`` and save."""
        memory = self._store.get(memory_id)
        if title is not None:
            memory.title = title
        if content is not None:
            memory.content = content
        if tags is not None:
            memory.tags = list(tags)
        memory.touch()
        self._store.save(memory)
        return memory

    def get_memory(self, memory_id: str) -> Memory:
        return self._store.get(memory_id)

    def list_memories(self) -> list[Memory]:
        return self._store.list()

    def search_memories(self, query: str) -> list[Memory]:
        return self._store.search(query)

    def search_memories_by_tag(self, tag: str) -> list[Memory]:
        return self._store.search_by_tag(tag)

    def delete_memory(self, memory_id: str) -> None:
        self._store.delete(memory_id)
