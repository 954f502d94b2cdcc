"""Markdown-with-frontmatter encoding for memory records.

Layout of a record file::

    ---
    id: <string>
    title: <string>
    tags: [<comma-separated strings>]
    created_at: <timestamp>
    updated_at: <timestamp>
    ---

    <body text, verbatim>

``decode`` is a strict small-grammar parser: split on the header delimiter,
then a per-line ``key: value`` scan. Each failure raises an
:class:`InvalidFormatError` naming the offending field. Tags are
trimmed and blank tags are dropped on both sides, so ``[""]`` and ``[]``
are stored identically.

``recover`` is the lossy fallback used by the store when strict decoding
failed on a timestamp. It re-extracts id, title and tags with looser
matching and stamps both timestamps with the current time. The
timestamps found in the file are discarded.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from conduit.memory.models import (
    InvalidFormatError,
    InvalidTimestampError,
    Memory,
    check_id,
    is_valid_id,
    utcnow,
)

DELIMITER = "---"

# Tried in order, first match wins. Legacy writers used the space-separated
# variants, with or without a space before the offset; naive values are
# read as UTC.
TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S.%f %z",
    "%Y-%m-%d %H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
)

_FRACTION_RE = re.compile(r"\.(\d+)")

_LOOSE_DOCUMENT_RE = re.compile(
    r"\A\s*-{3,}[ \t]*\r?\n(.*?)\r?\n-{3,}[ \t]*(?:\r?\n|\Z)(?:[ \t]*\r?\n)?(.*)\Z",
    re.DOTALL,
)
_LOOSE_TAGS_RE = re.compile(r"\[(.*?)\]")


# ── Timestamps ────────────────────────────────────────────


def format_timestamp(value: datetime) -> str:
    """RFC 3339 with an explicit offset. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str, field: str = "timestamp") -> datetime:
    """Parse any accepted timestamp format into an aware UTC datetime."""
    # strptime's %f takes at most 6 digits; older files carry nanoseconds.
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6], value.strip(), count=1)
    for fmt in TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    raise InvalidTimestampError(field, f"unrecognized timestamp {value.strip()!r}")


# ── Encode ────────────────────────────────────────────────


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


def encode(memory: Memory) -> str:
    """Render a memory as frontmatter + body."""
    tags = ", ".join(_single_line(t).strip() for t in memory.tags if t.strip())
    return (
        f"{DELIMITER}\n"
        f"id: {memory.id}\n"
        f"title: {_single_line(memory.title)}\n"
        f"tags: [{tags}]\n"
        f"created_at: {format_timestamp(memory.created_at)}\n"
        f"updated_at: {format_timestamp(memory.updated_at)}\n"
        f"{DELIMITER}\n\n"
        f"{memory.content}"
    )


# ── Strict decode ─────────────────────────────────────────


def _split_document(text: str) -> tuple[str, str]:
    """Return (header, body). The body is everything after the blank line."""
    opening = f"{DELIMITER}\n"
    if not text.startswith(opening):
        raise InvalidFormatError("header", "missing opening '---' delimiter")

    closing = f"\n{DELIMITER}\n"
    end = text.find(closing, len(opening) - 1)
    if end == -1:
        raise InvalidFormatError("header", "missing closing '---' delimiter")

    header = text[len(opening) : end]
    rest = text[end + len(closing) :]
    if not rest.startswith("\n"):
        raise InvalidFormatError("body", "missing blank line between header and body")
    return header, rest[1:]


def _scan_header(header: str) -> dict[str, str]:
    """Collect ``key: value`` lines. The first occurrence of a key wins."""
    fields: dict[str, str] = {}
    for line in header.split("\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key and key not in fields:
            fields[key] = value[1:] if value.startswith(" ") else value
    return fields


def parse_tags(value: str) -> list[str]:
    """Split a bracketed tag list. Blank entries are dropped."""
    value = value.strip()
    if not (value.startswith("[") and value.endswith("]")):
        raise InvalidFormatError("tags", f"expected a bracketed list, got {value!r}")
    return [t.strip() for t in value[1:-1].split(",") if t.strip()]


def decode(text: str) -> Memory:
    """Strictly decode a record. Raises InvalidFormatError on any violation."""
    header, body = _split_document(text)
    fields = _scan_header(header)

    for required in ("id", "title", "tags"):
        if required not in fields:
            raise InvalidFormatError(required, f"missing '{required}' line")

    memory_id = fields["id"].strip()
    check_id(memory_id)

    timestamps = {}
    for name in ("created_at", "updated_at"):
        if name not in fields:
            raise InvalidTimestampError(name, f"missing '{name}' line")
        timestamps[name] = parse_timestamp(fields[name], name)

    return Memory(
        id=memory_id,
        title=fields["title"],
        content=body,
        tags=parse_tags(fields["tags"]),
        created_at=timestamps["created_at"],
        updated_at=timestamps["updated_at"],
    )


# ── Recovery ──────────────────────────────────────────────


def _loose_field(header: str, key: str) -> str | None:
    pattern = re.compile(rf"^[ \t]*{key}[ \t]*:[ \t]*(.*?)[ \t]*\r?$", re.MULTILINE | re.IGNORECASE)
    match = pattern.search(header)
    return match.group(1) if match else None


def recover(text: str, now: datetime | None = None) -> Memory | None:
    """Best-effort rebuild of a record whose timestamps could not be parsed.

    Returns None when even the loose header extraction fails. Both
    timestamps are replaced by ``now``.
    """
    match = _LOOSE_DOCUMENT_RE.match(text)
    if not match:
        return None
    header, body = match.groups()

    memory_id = _loose_field(header, "id")
    title = _loose_field(header, "title")
    raw_tags = _loose_field(header, "tags")
    if memory_id is None or title is None or raw_tags is None:
        return None
    if not is_valid_id(memory_id):
        return None

    bracketed = _LOOSE_TAGS_RE.search(raw_tags)
    inner = bracketed.group(1) if bracketed else raw_tags
    tags = [t.strip() for t in inner.split(",") if t.strip()]

    stamp = now or utcnow()
    return Memory(
        id=memory_id,
        title=title,
        content=body,
        tags=tags,
        created_at=stamp,
        updated_at=stamp,
    )
