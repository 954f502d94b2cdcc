"""Document store: one markdown file per memory record.

Files on disk are the only state. There is no cache and no index, so every
operation goes back to the filesystem and search is list-then-filter.
Concurrent writers race at the filesystem level (last writer wins); callers
needing stronger guarantees serialize access themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from conduit.memory.encoding import decode, encode, recover
from conduit.memory.models import (
    InvalidFormatError,
    InvalidTimestampError,
    Memory,
    MemoryIOError,
    MemoryNotFoundError,
    check_id,
    is_valid_id,
)

logger = logging.getLogger(__name__)

RECORD_EXTENSION = ".md"


@dataclass
class SkippedFile:
    """A record file left out of a listing, and why."""

    path: Path
    reason: str


@dataclass
class ScanResult:
    """Outcome of a directory walk."""

    memories: list[Memory] = field(default_factory=list)
    recovered: list[str] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)


class MemoryStore:
    """Create/read/delete/list/search over a directory of record files."""

    def __init__(self, root: Path, *, self_heal: bool = True) -> None:
        self.root = Path(root)
        self._ensure_initialized()
        logger.info("Memory store opened at %s", self.root)
        if self_heal:
            self.heal()

    # ── Paths ─────────────────────────────────────────────────

    def _ensure_initialized(self) -> None:
        """Create the base directory. Idempotent."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MemoryIOError(self.root, e) from e

    def _path_for(self, memory_id: str) -> Path:
        check_id(memory_id)
        return self.root / f"{memory_id}{RECORD_EXTENSION}"

    def _record_files(self) -> list[Path]:
        self._ensure_initialized()
        try:
            return [p for p in self.root.iterdir() if p.suffix == RECORD_EXTENSION and p.is_file()]
        except OSError as e:
            raise MemoryIOError(self.root, e) from e

    def _write(self, path: Path, memory: Memory) -> None:
        try:
            path.write_text(encode(memory), encoding="utf-8")
        except OSError as e:
            raise MemoryIOError(path, e) from e

    # ── Self-healing ──────────────────────────────────────────

    def heal(self) -> list[Path]:
        """Rewrite recoverable files in canonical encoding.

        Only files failing on a timestamp are touched; the repaired record
        carries the current time in both timestamp fields. Returns the paths
        that were rewritten.
        """
        repaired: list[Path] = []
        for path in self._record_files():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s during repair: %s", path, e)
                continue
            try:
                decode(text)
                continue
            except InvalidTimestampError as e:
                memory = recover(text)
                if memory is None:
                    logger.debug("Unrecoverable %s: %s", path, e)
                    continue
            except InvalidFormatError as e:
                logger.debug("Not repairing %s: %s", path, e)
                continue
            if memory.id != path.stem:
                logger.warning("Recovered id %s does not match file %s", memory.id, path.name)
            try:
                path.write_text(encode(memory), encoding="utf-8")
            except OSError as e:
                logger.warning("Cannot rewrite %s: %s", path, e)
                continue
            logger.info("Repaired memory file: %s", path)
            repaired.append(path)
        return repaired

    # ── CRUD ──────────────────────────────────────────────────

    def save(self, memory: Memory) -> None:
        """Create or overwrite the record file for ``memory.id``.

        ``updated_at`` is written as-is; the store never bumps it.
        """
        self._ensure_initialized()
        self._write(self._path_for(memory.id), memory)
        logger.info("Saved memory %s", memory.id)

    def get(self, memory_id: str) -> Memory:
        """Strict read. A file needing repair raises InvalidFormatError here."""
        self._ensure_initialized()
        if not is_valid_id(memory_id):
            raise MemoryNotFoundError(memory_id)
        path = self._path_for(memory_id)
        if not path.is_file():
            raise MemoryNotFoundError(memory_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise MemoryNotFoundError(memory_id) from None
        except UnicodeDecodeError as e:
            raise InvalidFormatError("body", f"not valid UTF-8: {e}") from e
        except OSError as e:
            raise MemoryIOError(path, e) from e
        return decode(text)

    def delete(self, memory_id: str) -> None:
        self._ensure_initialized()
        if not is_valid_id(memory_id):
            raise MemoryNotFoundError(memory_id)
        path = self._path_for(memory_id)
        if not path.is_file():
            raise MemoryNotFoundError(memory_id)
        try:
            path.unlink()
        except FileNotFoundError:
            raise MemoryNotFoundError(memory_id) from None
        except OSError as e:
            raise MemoryIOError(path, e) from e
        logger.info("Deleted memory %s", memory_id)

    # ── Listing ───────────────────────────────────────────────

    def scan(self) -> ScanResult:
        """Decode every record file, recovering or skipping bad ones.

        One malformed file never aborts the walk. Files that vanish between
        enumeration and reading are skipped; other read failures raise.
        """
        result = ScanResult()
        for path in self._record_files():
            try:
                text = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                result.skipped.append(SkippedFile(path, "removed during scan"))
                continue
            except UnicodeDecodeError:
                logger.warning("Skipping memory file %s: not valid UTF-8", path.name)
                result.skipped.append(SkippedFile(path, "not valid UTF-8"))
                continue
            except OSError as e:
                raise MemoryIOError(path, e) from e

            try:
                result.memories.append(decode(text))
                continue
            except InvalidTimestampError as e:
                error = e
                memory = recover(text)
            except InvalidFormatError as e:
                error = e
                memory = None

            if memory is None:
                logger.warning("Skipping memory file %s: %s", path.name, error)
                result.skipped.append(SkippedFile(path, str(error)))
                continue
            logger.debug("Recovered %s after decode failure: %s", path.name, error)
            result.memories.append(memory)
            result.recovered.append(memory.id)
        return result

    def list(self) -> list[Memory]:
        """All records, in directory order."""
        return self.scan().memories

    # ── Search ────────────────────────────────────────────────

    def search(self, query: str) -> list[Memory]:
        """Case-insensitive substring match on title, content or any tag."""
        q = query.lower()
        return [
            m
            for m in self.list()
            if q in m.title.lower()
            or q in m.content.lower()
            or any(q in tag.lower() for tag in m.tags)
        ]

    def search_by_tag(self, tag: str) -> list[Memory]:
        """Case-insensitive exact match against any tag."""
        t = tag.lower()
        return [m for m in self.list() if any(t == existing.lower() for existing in m.tags)]
