"""Category patterns and per-bucket accumulation.

A row joins every bucket whose pattern occurs as a substring of any of its
resolved fields, so one row can land in several buckets (a ``VPN`` proxy on a
``DCH`` range flagged ``SPAM`` is in all three). Matching is case-sensitive
against fields that the resolver has already upper-cased.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, NamedTuple, Set, Tuple

from ..database.models import RowSpan


class CategoryPattern(NamedTuple):
    """Substring pattern and the bucket it feeds."""

    pattern: str
    bucket: str


CATEGORIES: Tuple[CategoryPattern, ...] = (
    CategoryPattern("VPN", "ip2proxy_vpn"),
    CategoryPattern("TOR", "ip2proxy_tor"),
    CategoryPattern("PUB", "ip2proxy_pub"),
    CategoryPattern("WEB", "ip2proxy_web"),
    CategoryPattern("RES", "ip2proxy_res"),
    CategoryPattern("DCH", "ip2proxy_dch"),
    CategoryPattern("COM", "ip2proxy_com"),
    CategoryPattern("EDU", "ip2proxy_edu"),
    CategoryPattern("GOV", "ip2proxy_gov"),
    CategoryPattern("ISP", "ip2proxy_isp"),
    CategoryPattern("MOB", "ip2proxy_mob"),
    CategoryPattern("SPAM", "ip2proxy_spam"),
    CategoryPattern("SCANNER", "ip2proxy_scanner"),
    CategoryPattern("BOTNET", "ip2proxy_botnet"),
    CategoryPattern("MALWARE", "ip2proxy_malware"),
    CategoryPattern("PHISHING", "ip2proxy_phishing"),
    CategoryPattern("BOGON", "ip2proxy_bogon"),
)

BUCKET_NAMES: Tuple[str, ...] = tuple(category.bucket for category in CATEGORIES)

Network = Tuple[int, int]


@dataclass(slots=True)
class Bucket:
    """Deduplicated single addresses and inclusive ranges of one category."""

    addresses: Set[int] = field(default_factory=set)
    networks: Set[Network] = field(default_factory=set)

    def add_span(self, span: RowSpan) -> None:
        if span.is_single_address:
            self.addresses.add(span.ip_from)
        else:
            self.networks.add((span.ip_from, span.last_address))

    def update(self, other: Bucket) -> None:
        self.addresses |= other.addresses
        self.networks |= other.networks

    def is_empty(self) -> bool:
        return not self.addresses and not self.networks


class BucketAccumulator:
    """Mapping of bucket name to ``Bucket`` covering every configured category.

    Not thread-safe; the pipeline gives each chunk its own accumulator and
    serializes merges into the shared one.
    """

    def __init__(self, bucket_names: Iterable[str] = BUCKET_NAMES) -> None:
        self.buckets: Dict[str, Bucket] = {name: Bucket() for name in bucket_names}

    def add(self, bucket_name: str, span: RowSpan) -> None:
        self.buckets.setdefault(bucket_name, Bucket()).add_span(span)

    def merge(self, other: BucketAccumulator) -> None:
        """Union ``other`` into this accumulator; duplicates collapse."""
        for name, bucket in other.buckets.items():
            if bucket.is_empty():
                continue
            self.buckets.setdefault(name, Bucket()).update(bucket)

    def is_empty(self) -> bool:
        return all(bucket.is_empty() for bucket in self.buckets.values())

    def drain(self) -> Dict[str, Tuple[list[int], list[Network]]]:
        """Return sorted addresses and networks per non-empty bucket and clear the accumulator.

        Addresses sort ascending; networks sort by ``(start, end)``.
        """
        drained: Dict[str, Tuple[list[int], list[Network]]] = {}
        for name, bucket in self.buckets.items():
            if bucket.is_empty():
                continue
            drained[name] = (sorted(bucket.addresses), sorted(bucket.networks))
        self.buckets = {name: Bucket() for name in self.buckets}
        return drained


class CategoryMatcher:
    """Classify rows into buckets by substring match on their resolved fields."""

    def __init__(self, categories: Iterable[CategoryPattern] = CATEGORIES) -> None:
        self.categories = tuple(categories)

    def categorize(self, span: RowSpan, fields: Iterable[str], accumulator: BucketAccumulator) -> int:
        """Add ``span`` to every matching bucket of ``accumulator``.

        Returns:
            Number of buckets the span was added to
        """
        values = tuple(fields)
        matched = 0
        for category in self.categories:
            if any(category.pattern in value for value in values):
                accumulator.add(category.bucket, span)
                matched += 1
        return matched


__all__ = [
    "BUCKET_NAMES",
    "Bucket",
    "BucketAccumulator",
    "CATEGORIES",
    "CategoryMatcher",
    "CategoryPattern",
    "Network",
]
