"""
Property-based tests for the derived-view engine.

Uses Hypothesis to verify countdown, progress, filtering, sorting and
pagination behaviour against a fixed reference time.
"""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_panel.enums import DomainStatus, ProgressSeverity, SortOrder
from domain_panel.models import DomainRecord, ViewQuery
from domain_panel.views import (
    build_page,
    clamp_page,
    collection_stats,
    days_left,
    filter_and_sort,
    find_expiring,
    is_expiring_soon,
    page_count,
    paginate,
    progress_severity,
    usage_progress,
)

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat()


def record(domain: str, expire: datetime, register: datetime = None, status: str = "active",
           registrar: str = "Namecheap") -> DomainRecord:
    return DomainRecord(
        domain=domain,
        status=status,
        registrar=registrar,
        register_date=iso(register or expire - timedelta(days=365)),
        expire_date=iso(expire),
    )


offset_strategy = st.integers(min_value=-3 * 365 * 86400, max_value=3 * 365 * 86400)


class TestDaysLeftProperty:
    """Property-based tests for the expiry countdown."""

    @given(days=st.integers(min_value=-1000, max_value=1000))
    @settings(max_examples=100)
    def test_whole_days_are_exact(self, days: int) -> None:
        assert days_left(iso(NOW + timedelta(days=days)), NOW) == days

    @given(days=st.integers(min_value=0, max_value=1000), seconds=st.integers(min_value=1, max_value=86399))
    @settings(max_examples=100)
    def test_partial_days_round_up(self, days: int, seconds: int) -> None:
        expire = NOW + timedelta(days=days, seconds=seconds)
        assert days_left(iso(expire), NOW) == days + 1

    def test_unparseable_date_raises(self) -> None:
        with pytest.raises(ValueError):
            days_left("soon", NOW)

    def test_naive_now_treated_as_utc(self) -> None:
        assert days_left("2025-06-11T12:00:00Z", datetime(2025, 6, 1, 12, 0, 0)) == 10


class TestUsageProgressProperty:
    """Property-based tests for registration-period usage."""

    @given(start=offset_strategy, length=st.integers(min_value=0, max_value=10 * 365 * 86400))
    @settings(max_examples=200)
    def test_progress_is_bounded(self, start: int, length: int) -> None:
        register = NOW + timedelta(seconds=start)
        expire = register + timedelta(seconds=length)

        progress = usage_progress(iso(register), iso(expire), NOW)

        assert 0 <= progress <= 100

    @given(
        length=st.integers(min_value=1, max_value=10 * 365 * 86400),
        a=st.floats(min_value=-0.5, max_value=1.5),
        b=st.floats(min_value=-0.5, max_value=1.5),
    )
    @settings(max_examples=200)
    def test_progress_is_monotonic_in_now(self, length: int, a: float, b: float) -> None:
        register = NOW
        expire = NOW + timedelta(seconds=length)
        earlier, later = sorted((a, b))

        first = usage_progress(iso(register), iso(expire), NOW + timedelta(seconds=length * earlier))
        second = usage_progress(iso(register), iso(expire), NOW + timedelta(seconds=length * later))

        assert first <= second

    def test_before_registration_is_zero(self) -> None:
        assert usage_progress("2026-01-01", "2027-01-01", NOW) == 0

    def test_after_expiry_is_hundred(self) -> None:
        assert usage_progress("2020-01-01", "2021-01-01", NOW) == 100

    def test_halfway_rounds_half_up(self) -> None:
        register = NOW - timedelta(days=1)
        expire = NOW + timedelta(days=1)
        assert usage_progress(iso(register), iso(expire), NOW) == 50

        # 1/8 of the period used is 12.5%
        register = NOW - timedelta(days=1)
        expire = NOW + timedelta(days=7)
        assert usage_progress(iso(register), iso(expire), NOW) == 13

    def test_zero_length_period(self) -> None:
        assert usage_progress(iso(NOW), iso(NOW), NOW) == 100
        assert usage_progress(iso(NOW), iso(NOW), NOW - timedelta(seconds=1)) == 0


class TestSeverityProperty:
    """Property-based tests for progress severity classes."""

    @given(progress=st.integers(min_value=0, max_value=100))
    @settings(max_examples=101)
    def test_thresholds(self, progress: int) -> None:
        severity = progress_severity(progress)

        if progress >= 80:
            assert severity == ProgressSeverity.DANGER
        elif progress >= 60:
            assert severity == ProgressSeverity.WARNING
        else:
            assert severity == ProgressSeverity.NORMAL


class TestExpiringSoonProperty:
    """Property-based tests for the warning window."""

    @given(window=st.integers(min_value=1, max_value=365))
    @settings(max_examples=100)
    def test_window_boundaries(self, window: int) -> None:
        assert is_expiring_soon(iso(NOW + timedelta(days=window)), window, NOW) is True
        assert is_expiring_soon(iso(NOW + timedelta(seconds=1)), window, NOW) is True
        assert is_expiring_soon(iso(NOW + timedelta(days=window, seconds=1)), window, NOW) is False

    @given(window=st.integers(min_value=1, max_value=365), past=st.integers(min_value=0, max_value=10 * 86400))
    @settings(max_examples=100)
    def test_due_or_past_is_not_expiring(self, window: int, past: int) -> None:
        assert is_expiring_soon(iso(NOW - timedelta(seconds=past)), window, NOW) is False

    def test_unparseable_expiry_is_not_expiring(self) -> None:
        assert is_expiring_soon("", 15, NOW) is False

    def test_find_expiring_keeps_input_order(self) -> None:
        records = [
            record("c.com", NOW + timedelta(days=10)),
            record("a.com", NOW + timedelta(days=100)),
            record("b.com", NOW + timedelta(days=2)),
        ]
        assert [r.domain for r in find_expiring(records, 15, NOW)] == ["c.com", "b.com"]


class TestFilterProperty:
    """Property-based tests for search and status filtering."""

    def test_search_matches_substring_case_insensitively(self) -> None:
        records = [
            record("example.com", NOW),
            record("test.org", NOW),
            record("MyExample.net", NOW),
        ]

        result = filter_and_sort(records, ViewQuery(search_text="example"), NOW)

        assert {r.domain for r in result} == {"example.com", "MyExample.net"}

    def test_search_covers_registrar_and_status(self) -> None:
        records = [
            record("a.com", NOW, registrar="阿里云"),
            record("b.com", NOW, status="pending"),
        ]

        assert [r.domain for r in filter_and_sort(records, ViewQuery(search_text="阿里"), NOW)] == ["a.com"]
        assert [r.domain for r in filter_and_sort(records, ViewQuery(search_text="PEND"), NOW)] == ["b.com"]

    @given(statuses=st.lists(st.sampled_from([s.value for s in DomainStatus]), max_size=30))
    @settings(max_examples=100)
    def test_status_filter(self, statuses: list[str]) -> None:
        records = [record(f"d{i}.com", NOW, status=s) for i, s in enumerate(statuses)]

        for status in DomainStatus:
            result = filter_and_sort(records, ViewQuery(status_filter=status.value), NOW)
            assert all(r.status == status.value for r in result)
            assert len(result) == statuses.count(status.value)

        assert len(filter_and_sort(records, ViewQuery(status_filter="all"), NOW)) == len(records)


class TestSortProperty:
    """Property-based tests for ordering."""

    @given(offsets=st.lists(st.integers(min_value=-1000, max_value=1000), max_size=30))
    @settings(max_examples=100)
    def test_default_order_is_soonest_expiry_first(self, offsets: list[int]) -> None:
        records = [record(f"d{i}.com", NOW + timedelta(days=o)) for i, o in enumerate(offsets)]

        result = filter_and_sort(records, None, NOW)

        assert [days_left(r.expire_date, NOW) for r in result] == sorted(offsets)

    @given(names=st.lists(st.sampled_from(["a.com", "B.com", "c.com", "a.com"]), max_size=20))
    @settings(max_examples=100)
    def test_sort_is_stable_in_both_directions(self, names: list[str]) -> None:
        records = [
            DomainRecord(name, "active", f"r{i}", "2024-01-01", "2025-01-01")
            for i, name in enumerate(names)
        ]

        for order in SortOrder:
            result = filter_and_sort(records, ViewQuery(sort_field="domain", sort_order=order), NOW)
            for name in set(names):
                same = [r.registrar for r in result if r.domain == name]
                assert same == [r.registrar for r in records if r.domain == name]

    def test_text_sort_is_case_insensitive(self) -> None:
        records = [
            DomainRecord("b.com", "active", "x", "2024-01-01", "2025-01-01"),
            DomainRecord("A.com", "active", "x", "2024-01-01", "2025-01-01"),
            DomainRecord("c.com", "active", "x", "2024-01-01", "2025-01-01"),
        ]

        asc = filter_and_sort(records, ViewQuery(sort_field="domain"), NOW)
        desc = filter_and_sort(records, ViewQuery(sort_field="domain", sort_order=SortOrder.DESC), NOW)

        assert [r.domain for r in asc] == ["A.com", "b.com", "c.com"]
        assert [r.domain for r in desc] == ["c.com", "b.com", "A.com"]

    def test_computed_fields_sort(self) -> None:
        records = [
            record("late.com", NOW + timedelta(days=300), register=NOW - timedelta(days=10)),
            record("soon.com", NOW + timedelta(days=3), register=NOW - timedelta(days=360)),
        ]

        by_days = filter_and_sort(records, ViewQuery(sort_field="daysLeft"), NOW)
        by_progress = filter_and_sort(records, ViewQuery(sort_field="progress", sort_order=SortOrder.DESC), NOW)

        assert [r.domain for r in by_days] == ["soon.com", "late.com"]
        assert [r.domain for r in by_progress] == ["soon.com", "late.com"]

    def test_unparseable_dates_sort_last(self) -> None:
        records = [
            DomainRecord("bad.com", "active", "x", "2024-01-01", "someday"),
            DomainRecord("ok.com", "active", "x", "2024-01-01", "2025-01-01"),
        ]

        result = filter_and_sort(records, ViewQuery(sort_field="expireDate"), NOW)

        assert [r.domain for r in result] == ["ok.com", "bad.com"]

    @pytest.mark.parametrize("sort_field", ["expireDate", "daysLeft", "progress"])
    def test_unparseable_dates_sort_last_descending(self, sort_field: str) -> None:
        records = [
            DomainRecord("bad.com", "active", "x", "2024-01-01", "someday"),
            DomainRecord("early.com", "active", "x", "2024-01-01", "2025-09-01"),
            DomainRecord("worse.com", "active", "x", "2024-01-01", ""),
            DomainRecord("late.com", "active", "x", "2024-01-01", "2026-09-01"),
        ]

        result = filter_and_sort(records, ViewQuery(sort_field=sort_field, sort_order=SortOrder.DESC), NOW)

        assert [r.domain for r in result][2:] == ["bad.com", "worse.com"]

    def test_sort_order_given_as_string(self) -> None:
        records = [
            DomainRecord("a.com", "active", "x", "2024-01-01", "2025-01-01"),
            DomainRecord("c.com", "active", "x", "2024-01-01", "2025-01-01"),
            DomainRecord("b.com", "active", "x", "2024-01-01", "2025-01-01"),
        ]

        desc = filter_and_sort(records, ViewQuery(sort_field="domain", sort_order="desc"), NOW)
        asc = filter_and_sort(records, ViewQuery(sort_field="domain", sort_order="asc"), NOW)

        assert [r.domain for r in desc] == ["c.com", "b.com", "a.com"]
        assert [r.domain for r in asc] == ["a.com", "b.com", "c.com"]

    def test_unknown_sort_order_raises(self) -> None:
        with pytest.raises(ValueError):
            filter_and_sort([record("a.com", NOW)], ViewQuery(sort_field="domain", sort_order="sideways"), NOW)

    def test_unknown_sort_field_raises(self) -> None:
        with pytest.raises(ValueError):
            filter_and_sort([record("a.com", NOW)], ViewQuery(sort_field="price"), NOW)

    def test_input_is_not_modified(self) -> None:
        records = [record("b.com", NOW + timedelta(days=5)), record("a.com", NOW + timedelta(days=1))]
        before = list(records)

        filter_and_sort(records, ViewQuery(sort_field="domain"), NOW)

        assert records == before


class TestPaginationProperty:
    """Property-based tests for page slicing."""

    def test_forty_five_items_in_pages_of_twenty(self) -> None:
        items = list(range(45))

        assert len(paginate(items, 1, 20)) == 20
        assert len(paginate(items, 3, 20)) == 5
        assert paginate(items, 4, 20) == []
        assert page_count(45, 20) == 3

    @given(
        total=st.integers(min_value=0, max_value=200),
        page_size=st.integers(min_value=1, max_value=50),
    )
    @settings(max_examples=100)
    def test_pages_partition_the_sequence(self, total: int, page_size: int) -> None:
        items = list(range(total))
        pages = [paginate(items, p, page_size) for p in range(1, page_count(total, page_size) + 1)]

        assert [x for page in pages for x in page] == items
        assert all(len(page) <= page_size for page in pages)

    @given(page=st.integers(max_value=0))
    @settings(max_examples=20)
    def test_non_positive_page_is_empty(self, page: int) -> None:
        assert paginate([1, 2, 3], page, 2) == []

    def test_invalid_page_size_raises(self) -> None:
        with pytest.raises(ValueError):
            paginate([1, 2, 3], 1, 0)

    @given(page=st.integers(min_value=-10, max_value=100), total=st.integers(min_value=0, max_value=100))
    @settings(max_examples=100)
    def test_clamp_page_stays_in_range(self, page: int, total: int) -> None:
        clamped = clamp_page(page, total, 20)
        assert 1 <= clamped <= page_count(total, 20)

    def test_build_page_clamps(self) -> None:
        records = [record(f"d{i}.com", NOW + timedelta(days=i)) for i in range(45)]

        view = build_page(records, None, page=9, page_size=20, now=NOW)

        assert view.page == 3
        assert view.page_count == 3
        assert view.total == 45
        assert [r.domain for r in view.items] == [f"d{i}.com" for i in range(40, 45)]


class TestCollectionStats:
    """Summary figures over a collection."""

    def test_counts_and_average(self) -> None:
        records = [
            record("a.com", NOW + timedelta(days=5), register=NOW - timedelta(days=5)),
            record("b.com", NOW - timedelta(days=1), status="expired"),
            DomainRecord("c.com", "pending", "x", "", ""),
        ]

        stats = collection_stats(records, 15, NOW)

        assert stats.total == 3
        assert (stats.active, stats.expired, stats.pending) == (1, 1, 1)
        assert stats.expiring_soon == 1
        # (50 + 100 + 0) / 3
        assert stats.average_progress == 50

    def test_empty_collection(self) -> None:
        stats = collection_stats([], 15, NOW)
        assert stats.total == 0
        assert stats.average_progress == 0
