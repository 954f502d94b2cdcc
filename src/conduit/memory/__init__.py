"""Flat-file memory store.

Layout:
    ~/.conduit/memories/
    ├── 6f1c…-….md       # One record per file, named after its id
    └── …

Each file is a frontmatter header (id, title, tags, created_at, updated_at)
followed by a blank line and the verbatim body. See ``encoding`` for the
format and ``store`` for the CRUD and search operations.
"""

from conduit.memory.encoding import decode, encode, recover
from conduit.memory.models import (
    InvalidFormatError,
    InvalidTimestampError,
    Memory,
    MemoryIOError,
    MemoryNotFoundError,
    MemoryStoreError,
)
from conduit.memory.store import MemoryStore, ScanResult, SkippedFile

__all__ = [
    "InvalidFormatError",
    "InvalidTimestampError",
    "Memory",
    "MemoryIOError",
    "MemoryNotFoundError",
    "MemoryStore",
    "MemoryStoreError",
    "ScanResult",
    "SkippedFile",
    "decode",
    "encode",
    "recover",
]
