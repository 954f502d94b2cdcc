"""Entry point: python -m conduit <command>

- list                              List all memories
- get <id>                          Show one memory
- add <title> [content] [--tag T]   Create a memory, print its id
- search <query>                    Substring search over title, body and tags
- tag <tag>                         Exact tag match
- delete <id>                       Remove a memory
"""

from __future__ import annotations

import json
import logging
import sys

from conduit.backend import ConduitBackend
from conduit.config import load_config
from conduit.memory.models import MemoryStoreError

USAGE = """\
Usage: python -m conduit <command> [args]
  list                             — List all memories
  get <id>                         — Show one memory
  add <title> [content] [--tag T]  — Create a memory
  search <query>                   — Search title, content and tags
  tag <tag>                        — Memories carrying a tag
  delete <id>                      — Delete a memory"""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_json(data: object) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _parse_add(args: list[str]) -> tuple[str, str, list[str]]:
    tags: list[str] = []
    positional: list[str] = []
    it = iter(args)
    for arg in it:
        if arg == "--tag":
            value = next(it, None)
            if value is None:
                raise ValueError("--tag needs a value")
            tags.append(value)
        else:
            positional.append(arg)
    if not positional:
        raise ValueError("add needs a title")
    return positional[0], " ".join(positional[1:]), tags


def run(argv: list[str], backend: ConduitBackend) -> int:
    """Execute one command. Returns the process exit status."""
    cmd, args = (argv[0], argv[1:]) if argv else ("list", [])

    try:
        if cmd == "list":
            _print_json([m.to_dict() for m in backend.list_memories()])
        elif cmd == "get" and len(args) == 1:
            _print_json(backend.get_memory(args[0]).to_dict())
        elif cmd == "add":
            title, content, tags = _parse_add(args)
            print(backend.create_memory(title, content, tags))
        elif cmd == "search" and len(args) == 1:
            _print_json([m.to_dict() for m in backend.search_memories(args[0])])
        elif cmd == "tag" and len(args) == 1:
            _print_json([m.to_dict() for m in backend.search_memories_by_tag(args[0])])
        elif cmd == "delete" and len(args) == 1:
            backend.delete_memory(args[0])
        else:
            print(USAGE)
            return 1
    except (MemoryStoreError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    config = load_config()
    _setup_logging(config.log_level)
    try:
        backend = ConduitBackend.from_config(config)
    except MemoryStoreError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(run(sys.argv[1:], backend))


if __name__ == "__main__":
    main()
