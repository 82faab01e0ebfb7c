"""Output document assembly for extracted proxy lists."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .categories import BUCKET_NAMES, Network


@dataclass(slots=True)
class ListData:
    """Sorted addresses and inclusive ``(start, end)`` networks of one bucket."""

    addresses: List[int] = field(default_factory=list)
    networks: List[Network] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addresses": list(self.addresses),
            "networks": [[start, end] for start, end in self.networks],
        }


@dataclass(slots=True)
class ProxyListDocument:
    """Capture timestamp plus the per-bucket lists handed to the serializer.

    Attributes:
        timestamp: Capture time in whole seconds since the Unix epoch
        lists: Bucket name to list data, in category order
    """

    timestamp: int
    lists: Dict[str, ListData]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "lists": {name: data.to_dict() for name, data in self.lists.items()},
        }


class ResultAssembler:
    """Package pipeline output into a ``ProxyListDocument``.

    Buckets are emitted in category order, with unknown names appended in
    sorted order, so repeated runs over one database serialize identically
    apart from the timestamp.
    """

    def __init__(self, bucket_order: Iterable[str] = BUCKET_NAMES) -> None:
        self.bucket_order = tuple(bucket_order)

    def assemble(self, lists: Mapping[str, ListData], timestamp: Optional[int] = None) -> ProxyListDocument:
        if timestamp is None:
            timestamp = int(time.time())
        known = [name for name in self.bucket_order if name in lists]
        extra = sorted(name for name in lists if name not in self.bucket_order)
        return ProxyListDocument(
            timestamp=timestamp,
            lists={name: lists[name] for name in known + extra},
        )


__all__ = ["ListData", "ProxyListDocument", "ResultAssembler"]
