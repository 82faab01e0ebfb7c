"""Utilities for publishing extraction telemetry to status files."""

from __future__ import annotations

import json
import threading
from dataclasses import fields, is_dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict

_DEFAULT_STATUS_DIR = Path.home() / ".cache" / "proxylists" / "status"


def _to_dict(obj: Any) -> Dict[str, Any]:
    if is_dataclass(obj) and not isinstance(obj, type):
        result = _normalize({field.name: getattr(obj, field.name) for field in fields(obj)})
        return result if isinstance(result, dict) else {}
    if isinstance(obj, dict):
        result = _normalize(dict(obj))
        return result if isinstance(result, dict) else {}
    if hasattr(obj, "__dict__"):
        result = _normalize(dict(obj.__dict__))
        return result if isinstance(result, dict) else {}
    raise TypeError(f"Unsupported object type for status serialization: {type(obj)!r}")


class StatusEmitter:
    """Writes extraction progress to JSON files consumable by monitors."""

    def __init__(
        self,
        phase: str,
        status_dir: str | Path | None = None,
        *,
        aggregate: bool = True,
    ) -> None:
        """Create an emitter for the given extraction phase."""
        self.phase = phase
        self.status_dir = Path(status_dir) if status_dir else _DEFAULT_STATUS_DIR
        self.status_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.status_dir / f"{phase}.json"
        self._aggregate_enabled = aggregate
        self._aggregate_path = self.status_dir / "status.json"
        self._lock = threading.Lock()
        self._state: Dict[str, Any] = {
            "phase": phase,
            "source": None,
            "last_updated": None,
            "metrics": {},
        }

    def record_metrics(self, metrics: Any) -> None:
        """Persist the latest extraction metrics snapshot."""
        with self._lock:
            metrics_dict = _to_dict(metrics)
            source = metrics_dict.get("source")
            if source:
                self._state["source"] = source
            self._state["metrics"] = _enhance_metrics(metrics_dict)
            self._state["last_updated"] = datetime.now(UTC).isoformat()
            self._write_state()

    def _write_state(self) -> None:
        tmp_path = self.path.with_suffix(".tmp")
        payload = json.dumps(self._state, separators=(",", ":"))
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(self.path)
        if self._aggregate_enabled:
            self._update_aggregate()

    def _update_aggregate(self) -> None:
        """Update the consolidated status file with the current phase snapshot."""
        aggregate_snapshot = {
            "phase": self.phase,
            "source": self._state.get("source"),
            "last_updated": self._state.get("last_updated"),
            "metrics": self._state.get("metrics", {}),
            "status_file": self.path.name,
        }

        try:
            current = json.loads(self._aggregate_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            current = {}
        except json.JSONDecodeError:
            current = {}

        phases = current.get("phases", {})
        phases[self.phase] = aggregate_snapshot
        aggregate = {
            "last_updated": datetime.now(UTC).isoformat(),
            "phases": phases,
        }

        aggregate_tmp = self._aggregate_path.with_suffix(".tmp")
        aggregate_tmp.write_text(json.dumps(aggregate, separators=(",", ":")), encoding="utf-8")
        aggregate_tmp.replace(self._aggregate_path)


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize(val) for key, val in value.items()}
    return value


def _enhance_metrics(metrics: Dict[str, Any]) -> Dict[str, Any]:
    """Add derived telemetry fields to metrics dictionaries."""
    duration = metrics.get("duration_seconds") or 0
    if duration and duration > 0 and metrics.get("rows_read") is not None:
        metrics["rows_per_second"] = round((metrics.get("rows_read") or 0) / duration, 2)

    chunks_total = metrics.get("chunks_total")
    if chunks_total and chunks_total > 0 and metrics.get("chunks_completed") is not None:
        metrics["percent_complete"] = round((metrics.get("chunks_completed") or 0) / chunks_total * 100, 1)

    return metrics


__all__ = ["StatusEmitter"]
