"""JSON writer for ``ProxyListDocument``."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .assembler import ProxyListDocument

logger = logging.getLogger(__name__)


def dumps_document(document: ProxyListDocument) -> str:
    """Return the compact JSON text of ``document``."""
    return json.dumps(document.to_dict(), separators=(",", ":"))


def write_document(document: ProxyListDocument, path: str | Path) -> Path:
    """Write ``document`` to ``path`` atomically and return the path written."""
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(dumps_document(document), encoding="utf-8")
    tmp_path.replace(path)
    logger.info(f"Saved {path} with {len(document.lists)} lists")
    return path


__all__ = ["dumps_document", "write_document"]
