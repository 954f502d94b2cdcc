"""Configuration loading from environment variables and conduit.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

DEFAULT_MEMORY_DIR = Path.home() / ".conduit" / "memories"
_CONFIG_FILENAME = "conduit.toml"


def _as_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class ConduitConfig:
    """Top-level Conduit configuration."""

    memory_dir: Path = DEFAULT_MEMORY_DIR
    self_heal: bool = True
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> ConduitConfig:
    """Load configuration from environment variables and optional conduit.toml.

    Priority: environment variables > conduit.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.conduit/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".conduit" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    memory_data = file_data.get("memory", {})

    return ConduitConfig(
        memory_dir=Path(
            os.getenv("CONDUIT_MEMORY_DIR", memory_data.get("dir", str(DEFAULT_MEMORY_DIR)))
        ).expanduser(),
        self_heal=_as_bool(os.getenv("CONDUIT_SELF_HEAL", memory_data.get("self_heal", True))),
        log_level=os.getenv("CONDUIT_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
