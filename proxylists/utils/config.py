"""Configuration loading utilities for proxylists.toml."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_CONFIG_CANDIDATES = (Path("config/proxylists.toml"), Path("proxylists.toml"))


def _find_config_file() -> Path | None:
    for candidate in _CONFIG_CANDIDATES:
        if candidate.exists():
            return candidate
    return None


def load_extraction_config(path: Path | None = None) -> dict[str, Any] | None:
    """Load the ``[extraction]`` table from proxylists.toml if available.

    Tries ``config/proxylists.toml`` first, then ``proxylists.toml`` in the
    current directory, unless ``path`` is given.

    Returns:
        The extraction table as a dict, or None if no file or table exists or the
        file cannot be parsed
    """
    config_file = path or _find_config_file()
    if config_file is None or not config_file.exists():
        return None

    try:
        with config_file.open("rb") as handle:
            data = tomllib.load(handle)
    except OSError as e:
        logger.debug(f"Could not read {config_file}: {e}")
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Failed to parse {config_file}: {e}. Using defaults.")
        return None

    section = data.get("extraction", {})
    if not isinstance(section, dict) or not section:
        return None
    return dict(section)


__all__ = ["load_extraction_config"]
