"""
Derived-view engine for the domain panel.

Pure functions that compute time-based fields for a record (days left,
usage progress, severity) and build filtered, sorted and paginated views
over a record collection. Nothing here performs I/O; every function that
depends on the clock takes an explicit ``now``.
"""

import math
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from .dates import DAY_SECONDS, parse_date, resolve_now, try_parse_date
from .enums import DomainStatus, ProgressSeverity, SortOrder
from .models import CollectionStats, DomainRecord, ViewPage, ViewQuery

T = TypeVar("T")

DEFAULT_WARNING_DAYS = 15
DEFAULT_PAGE_SIZE = 20

DANGER_THRESHOLD = 80
WARNING_THRESHOLD = 60

# View-facing field names mapped to record attributes
TEXT_SORT_FIELDS = {
    "domain": "domain",
    "status": "status",
    "registrar": "registrar",
    "renewUrl": "renew_url",
}
DATE_SORT_FIELDS = {
    "registerDate": "register_date",
    "expireDate": "expire_date",
}
SORT_FIELDS = frozenset(TEXT_SORT_FIELDS) | frozenset(DATE_SORT_FIELDS) | {"daysLeft", "progress"}


def days_left(expire_date, now: Optional[datetime] = None) -> int:
    """
    Whole days until expiry, rounded up.

    Negative once the domain has expired.

    Raises:
        ValueError: If expire_date cannot be parsed
    """
    now = resolve_now(now)
    expiry = parse_date(expire_date)
    return math.ceil((expiry - now).total_seconds() / DAY_SECONDS)


def usage_progress(register_date, expire_date, now: Optional[datetime] = None) -> int:
    """
    Percentage of the registration period already used.

    The end bound is checked first so a zero-length period reports 100
    without dividing.

    Raises:
        ValueError: If either date cannot be parsed
    """
    now = resolve_now(now)
    start = parse_date(register_date)
    end = parse_date(expire_date)

    if now >= end:
        return 100
    if now <= start:
        return 0

    ratio = (now - start).total_seconds() / (end - start).total_seconds()
    return max(0, min(100, math.floor(ratio * 100 + 0.5)))


def progress_severity(progress: int) -> ProgressSeverity:
    """Map a usage percentage to its display class."""
    if progress >= DANGER_THRESHOLD:
        return ProgressSeverity.DANGER
    if progress >= WARNING_THRESHOLD:
        return ProgressSeverity.WARNING
    return ProgressSeverity.NORMAL


def is_expiring_soon(
    expire_date,
    window_days: int = DEFAULT_WARNING_DAYS,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether a domain expires within the warning window.

    A domain due today or already past is not "expiring soon".
    Unparseable dates are never expiring.
    """
    try:
        remaining = days_left(expire_date, now)
    except ValueError:
        return False
    return 0 < remaining <= window_days


def find_expiring(
    records: Iterable[DomainRecord],
    window_days: int = DEFAULT_WARNING_DAYS,
    now: Optional[datetime] = None,
) -> list[DomainRecord]:
    """Records inside the expiring-soon window, in input order."""
    now = resolve_now(now)
    return [r for r in records if is_expiring_soon(r.expire_date, window_days, now)]


def record_progress(record: DomainRecord, now: Optional[datetime] = None) -> Optional[int]:
    """Usage progress of a record, or None when a date is unparseable."""
    try:
        return usage_progress(record.register_date, record.expire_date, now)
    except ValueError:
        return None


def record_days_left(record: DomainRecord, now: Optional[datetime] = None) -> Optional[int]:
    """Days left for a record, or None when the expiry is unparseable."""
    try:
        return days_left(record.expire_date, now)
    except ValueError:
        return None


def matches(record: DomainRecord, search_text: str, status_filter: str = "all") -> bool:
    """Apply the status filter and case-insensitive text search."""
    if status_filter != "all" and record.status != status_filter:
        return False
    if not search_text:
        return True
    needle = search_text.lower()
    return any(
        needle in (value or "").lower()
        for value in (record.domain, record.registrar, record.status)
    )


def _sort_key(sort_field: str, now: datetime) -> Callable[[DomainRecord], Any]:
    # Returns None for values that cannot be computed
    if sort_field in DATE_SORT_FIELDS:
        attr = DATE_SORT_FIELDS[sort_field]

        def date_key(record: DomainRecord):
            parsed = try_parse_date(getattr(record, attr))
            return None if parsed is None else parsed.timestamp()

        return date_key

    if sort_field == "daysLeft":
        return lambda record: record_days_left(record, now)

    if sort_field == "progress":
        return lambda record: record_progress(record, now)

    if sort_field in TEXT_SORT_FIELDS:
        attr = TEXT_SORT_FIELDS[sort_field]
        return lambda record: str(getattr(record, attr) or "").lower()

    raise ValueError(f"Unknown sort field: {sort_field}")


def _sorted(records: list[DomainRecord], key: Callable[[DomainRecord], Any], descending: bool) -> list[DomainRecord]:
    """Sort by key; records without a value follow in input order either way."""
    keyed = [(key(r), r) for r in records]
    ordered = sorted(
        (pair for pair in keyed if pair[0] is not None),
        key=lambda pair: pair[0],
        reverse=descending,
    )
    return [r for _, r in ordered] + [r for value, r in keyed if value is None]


def filter_and_sort(
    records: Iterable[DomainRecord],
    query: Optional[ViewQuery] = None,
    now: Optional[datetime] = None,
) -> list[DomainRecord]:
    """
    Filter and order records for display.

    Without a sort field the list is ordered soonest-expiring first.
    Sorting is stable, so equal keys keep their input order in both
    directions.

    Args:
        records: The record collection
        query: Search text, status filter, sort field and order
        now: Reference time for daysLeft/progress sorting

    Returns:
        New list; the input is not modified

    Raises:
        ValueError: If the sort field or sort order is unknown
    """
    query = query or ViewQuery()
    now = resolve_now(now)

    selected = [r for r in records if matches(r, query.search_text, query.status_filter)]

    if query.sort_field:
        order = SortOrder(query.sort_order)
        return _sorted(selected, _sort_key(query.sort_field, now), order == SortOrder.DESC)

    return _sorted(selected, _sort_key("expireDate", now), False)


def paginate(sequence: Sequence[T], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> list[T]:
    """
    Slice one 1-indexed page out of a sequence.

    Pages outside the sequence yield an empty list; callers clamp the page
    number for display with clamp_page.

    Raises:
        ValueError: If page_size is less than 1
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if page < 1:
        return []
    return list(sequence[(page - 1) * page_size: page * page_size])


def page_count(total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Number of pages needed for total items (at least 1)."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Clamp a page number into [1, page_count]."""
    return max(1, min(page, page_count(total, page_size)))


def build_page(
    records: Iterable[DomainRecord],
    query: Optional[ViewQuery] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    now: Optional[datetime] = None,
) -> ViewPage:
    """Filter, sort, clamp the page number and slice in one step."""
    ordered = filter_and_sort(records, query, now)
    current = clamp_page(page, len(ordered), page_size)
    return ViewPage(
        items=paginate(ordered, current, page_size),
        total=len(ordered),
        page=current,
        page_size=page_size,
        page_count=page_count(len(ordered), page_size),
    )


def collection_stats(
    records: Sequence[DomainRecord],
    window_days: int = DEFAULT_WARNING_DAYS,
    now: Optional[datetime] = None,
) -> CollectionStats:
    """
    Summary counts and average usage progress.

    Records with unparseable dates count as 0% progress.
    """
    now = resolve_now(now)
    total = len(records)
    progress_sum = sum(record_progress(r, now) or 0 for r in records)

    return CollectionStats(
        total=total,
        active=sum(1 for r in records if r.status == DomainStatus.ACTIVE.value),
        expired=sum(1 for r in records if r.status == DomainStatus.EXPIRED.value),
        pending=sum(1 for r in records if r.status == DomainStatus.PENDING.value),
        expiring_soon=len(find_expiring(records, window_days, now)),
        average_progress=math.floor(progress_sum / total + 0.5) if total else 0,
    )
