"""Runtime configuration for proxy list extraction."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

from .utils.config import load_extraction_config

EXECUTORS = frozenset({"process", "thread"})


def _coerce_int(value: str | None, default: int | None) -> int | None:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _coerce_float(value: str | None, default: float | None) -> float | None:
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


@dataclass(slots=True)
class ExtractionSettings:
    """Tuning knobs for the chunked extraction pipeline."""

    chunk_size: int = 10000
    progress_interval: int = 10  # chunks
    max_workers: int | None = None
    executor: str = "process"
    timeout_seconds: float | None = None
    lock_timeout_seconds: float = 30.0

    @classmethod
    def from_sources(
        cls,
        config: Mapping[str, Any] | None = None,
        env_prefix: str = "PROXYLISTS_",
        file_config: Mapping[str, Any] | None = None,
    ) -> "ExtractionSettings":
        """Build settings from defaults, a config file section, environment variables and explicit values.

        Precedence order (highest to lowest):
        1. Explicit config mapping values
        2. Environment variables
        3. Config file values
        4. Default values
        """
        defaults = cls()
        known = {f.name for f in fields(cls)}
        cfg: dict[str, Any] = {name: getattr(defaults, name) for name in known}

        if file_config:
            cfg.update({k: v for k, v in file_config.items() if k in known and v is not None})

        config_keys: set[str] = set()
        if config:
            config_keys = {k for k, v in config.items() if k in known and v is not None}

        env = os.environ
        prefix = env_prefix.upper()

        if "chunk_size" not in config_keys:
            cfg["chunk_size"] = _coerce_int(env.get(f"{prefix}CHUNK_SIZE"), cfg["chunk_size"])

        if "progress_interval" not in config_keys:
            cfg["progress_interval"] = _coerce_int(env.get(f"{prefix}PROGRESS_INTERVAL"), cfg["progress_interval"])

        if "max_workers" not in config_keys:
            workers = env.get(f"{prefix}MAX_WORKERS")
            if workers is not None:
                coerced = _coerce_int(workers, -1)
                cfg["max_workers"] = coerced if coerced is not None and coerced > 0 else None

        if "executor" not in config_keys:
            executor_override = env.get(f"{prefix}EXECUTOR")
            if executor_override:
                cfg["executor"] = executor_override.strip().lower()

        if "timeout_seconds" not in config_keys:
            cfg["timeout_seconds"] = _coerce_float(env.get(f"{prefix}TIMEOUT_SECONDS"), cfg["timeout_seconds"])

        if "lock_timeout_seconds" not in config_keys:
            cfg["lock_timeout_seconds"] = _coerce_float(
                env.get(f"{prefix}LOCK_TIMEOUT_SECONDS"), cfg["lock_timeout_seconds"]
            )

        if config:
            cfg.update({k: config[k] for k in config_keys})

        settings = cls(**cfg)
        settings.validate()
        return settings

    def validate(self) -> None:
        """Reject values the pipeline cannot run with.

        Raises:
            ValueError: If a size or interval is not positive, or the executor is unknown
        """
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if self.executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {sorted(EXECUTORS)}, got {self.executor!r}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.lock_timeout_seconds <= 0:
            raise ValueError(f"lock_timeout_seconds must be positive, got {self.lock_timeout_seconds}")


def load_extraction_settings(
    config: Mapping[str, Any] | None = None,
    env_prefix: str = "PROXYLISTS_",
) -> ExtractionSettings:
    """Convenience wrapper used by CLI entry points; reads proxylists.toml when present."""
    return ExtractionSettings.from_sources(
        config=config,
        env_prefix=env_prefix,
        file_config=load_extraction_config(),
    )


__all__ = ["ExtractionSettings", "load_extraction_settings"]
