"""Unit tests for category matching and bucket accumulation."""

from __future__ import annotations

from proxylists.database.models import RowSpan
from proxylists.extraction.categories import (
    BUCKET_NAMES,
    CATEGORIES,
    Bucket,
    BucketAccumulator,
    CategoryMatcher,
    CategoryPattern,
)


class TestCategories:
    """Test the fixed category table."""

    def test_bucket_names(self) -> None:
        assert len(CATEGORIES) == 17
        assert BUCKET_NAMES[0] == "ip2proxy_vpn"
        assert BUCKET_NAMES[-1] == "ip2proxy_bogon"
        for category in CATEGORIES:
            assert category.bucket == f"ip2proxy_{category.pattern.lower()}"

    def test_bucket_names_are_unique(self) -> None:
        assert len(set(BUCKET_NAMES)) == len(BUCKET_NAMES)


class TestCategoryMatcher:
    """Test CategoryMatcher.categorize."""

    def test_single_address_representation(self) -> None:
        accumulator = BucketAccumulator()
        matched = CategoryMatcher().categorize(RowSpan(100, 101), ("-", "DCH", "-"), accumulator)

        assert matched == 1
        assert accumulator.buckets["ip2proxy_dch"].addresses == {100}
        assert accumulator.buckets["ip2proxy_dch"].networks == set()

    def test_range_representation_is_inclusive(self) -> None:
        accumulator = BucketAccumulator()
        CategoryMatcher().categorize(RowSpan(100, 110), ("-", "DCH", "-"), accumulator)

        assert accumulator.buckets["ip2proxy_dch"].addresses == set()
        assert accumulator.buckets["ip2proxy_dch"].networks == {(100, 109)}

    def test_record_joins_every_matching_bucket(self) -> None:
        accumulator = BucketAccumulator()
        matched = CategoryMatcher().categorize(RowSpan(5, 6), ("VPN", "DCH", "SPAM"), accumulator)

        assert matched == 3
        for name in ("ip2proxy_vpn", "ip2proxy_dch", "ip2proxy_spam"):
            assert accumulator.buckets[name].addresses == {5}

    def test_pattern_matches_as_substring(self) -> None:
        accumulator = BucketAccumulator()
        matched = CategoryMatcher().categorize(RowSpan(5, 6), ("-", "ISP/MOB", "-"), accumulator)

        assert matched == 2
        assert accumulator.buckets["ip2proxy_isp"].addresses == {5}
        assert accumulator.buckets["ip2proxy_mob"].addresses == {5}

    def test_substring_inside_longer_value_matches(self) -> None:
        accumulator = BucketAccumulator()
        CategoryMatcher().categorize(RowSpan(5, 6), ("-", "-", "TORRENT"), accumulator)
        assert accumulator.buckets["ip2proxy_tor"].addresses == {5}

    def test_match_is_case_sensitive(self) -> None:
        accumulator = BucketAccumulator()
        matched = CategoryMatcher().categorize(RowSpan(5, 6), ("vpn", "-", "-"), accumulator)
        assert matched == 0
        assert accumulator.is_empty()

    def test_sentinel_matches_nothing(self) -> None:
        accumulator = BucketAccumulator()
        assert CategoryMatcher().categorize(RowSpan(5, 6), ("-", "-", "-"), accumulator) == 0
        assert accumulator.is_empty()

    def test_custom_categories(self) -> None:
        matcher = CategoryMatcher([CategoryPattern("HOSTING", "custom_hosting")])
        accumulator = BucketAccumulator(["custom_hosting"])
        matcher.categorize(RowSpan(7, 9), ("-", "HOSTING", "-"), accumulator)
        assert accumulator.buckets["custom_hosting"].networks == {(7, 8)}


class TestBucketAccumulator:
    """Test accumulator merge and drain semantics."""

    def test_duplicates_collapse_within_bucket(self) -> None:
        bucket = Bucket()
        bucket.add_span(RowSpan(1, 2))
        bucket.add_span(RowSpan(1, 2))
        bucket.add_span(RowSpan(3, 8))
        bucket.add_span(RowSpan(3, 8))
        assert bucket.addresses == {1}
        assert bucket.networks == {(3, 7)}

    def test_merge_is_set_union(self) -> None:
        left = BucketAccumulator()
        right = BucketAccumulator()
        left.add("ip2proxy_vpn", RowSpan(1, 2))
        right.add("ip2proxy_vpn", RowSpan(1, 2))
        right.add("ip2proxy_vpn", RowSpan(9, 10))
        right.add("ip2proxy_tor", RowSpan(20, 30))

        left.merge(right)

        assert left.buckets["ip2proxy_vpn"].addresses == {1, 9}
        assert left.buckets["ip2proxy_tor"].networks == {(20, 29)}

    def test_drain_sorts_and_omits_empty_buckets(self) -> None:
        accumulator = BucketAccumulator()
        for ip_from in (50, 3, 27, 3):
            accumulator.add("ip2proxy_vpn", RowSpan(ip_from, ip_from + 1))
        for span in (RowSpan(10, 20), RowSpan(5, 30), RowSpan(10, 15)):
            accumulator.add("ip2proxy_vpn", span)

        drained = accumulator.drain()

        assert list(drained) == ["ip2proxy_vpn"]
        addresses, networks = drained["ip2proxy_vpn"]
        assert addresses == [3, 27, 50]
        assert networks == [(5, 29), (10, 14), (10, 19)]

    def test_drain_empties_accumulator(self) -> None:
        accumulator = BucketAccumulator()
        accumulator.add("ip2proxy_vpn", RowSpan(1, 2))
        accumulator.drain()
        assert accumulator.is_empty()
        assert accumulator.drain() == {}

    def test_values_above_32_bits_are_kept(self) -> None:
        accumulator = BucketAccumulator()
        accumulator.add("ip2proxy_bogon", RowSpan(0xFFFFFF00, 0x100000000))
        assert accumulator.drain()["ip2proxy_bogon"][1] == [(0xFFFFFF00, 0xFFFFFFFF)]
