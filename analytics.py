"""Request and registration analytics for the station dashboard.

Every per-show breakdown goes through the shared schedule matcher, so requests
and registrations are attributed to shows by exactly the same rules.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from config import Config
from schedule_matcher import schedule_matcher
from sheet_records import (
    PRIORITY_HIGH, PRIORITY_MEDIUM,
    request_priority, request_timestamp, registration_timestamp
)

logger = logging.getLogger(__name__)

TopList = List[Tuple[str, int]]


def _top(counts: Counter, top_n: Optional[int]) -> TopList:
    # most_common keeps first-seen order for ties
    return counts.most_common(top_n if top_n is not None else Config.TOP_N)


def _count_field(rows: Iterable[Mapping[str, Any]], field: str) -> Counter:
    counts = Counter()
    for row in rows:
        value = row.get(field)
        value = str(value).strip() if value is not None else ''
        if value:
            counts[value] += 1
    return counts


def count_by_show(records: Iterable[Mapping[str, Any]], shows: List[Mapping[str, Any]],
                  timestamp_fn: Callable[[Mapping[str, Any]], Optional[datetime]]) -> Counter:
    """Count records per show on air when each record was made.

    Records without a usable timestamp, or made while nothing was on air, are
    skipped. When several shows overlap, the first in schedule order wins.
    """
    counts = Counter()
    if not shows:
        return counts

    skipped = 0
    for record in records:
        at = timestamp_fn(record)
        if at is None:
            skipped += 1
            continue
        show = schedule_matcher.find_show_on_air(shows, at)
        if show is not None:
            counts[show.get('Show')] += 1

    if skipped:
        logger.debug(f"Skipped {skipped} records without a usable timestamp")

    return counts


def priority_breakdown(requests: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """Count requests per triage priority."""
    breakdown = {'high': 0, 'medium': 0, 'low': 0}
    for request in requests:
        priority = request_priority(request)
        if priority == PRIORITY_HIGH:
            breakdown['high'] += 1
        elif priority == PRIORITY_MEDIUM:
            breakdown['medium'] += 1
        else:
            breakdown['low'] += 1
    return breakdown


def request_analytics(requests: List[Mapping[str, Any]], shows: List[Mapping[str, Any]],
                      top_n: Optional[int] = None) -> Dict[str, Any]:
    """Song request overview: totals, priorities, top songs, occasions and shows."""
    return {
        'total': len(requests),
        'priorities': priority_breakdown(requests),
        'top_songs': _top(_count_field(requests, 'Song requested'), top_n),
        'top_occasions': _top(_count_field(requests, 'Occasion'), top_n),
        'top_shows': _top(count_by_show(requests, shows, request_timestamp), top_n)
    }


def registration_analytics(registrations: List[Mapping[str, Any]], shows: List[Mapping[str, Any]],
                           top_n: Optional[int] = None) -> Dict[str, Any]:
    """Listener registration overview: totals, top areas and shows at signup."""
    return {
        'total': len(registrations),
        'top_areas': _top(_count_field(registrations, 'Area'), top_n),
        'top_shows': _top(count_by_show(registrations, shows, registration_timestamp), top_n)
    }


def overview(registrations: List[Mapping[str, Any]], requests: List[Mapping[str, Any]],
             top_n: Optional[int] = None) -> Dict[str, Any]:
    """Dashboard headline numbers."""
    referrers = _count_field(registrations, 'ReferredByCode')
    return {
        'total_users': len(registrations),
        'total_requests': len(requests),
        'total_referrals': sum(referrers.values()),
        'priorities': priority_breakdown(requests),
        'top_referrers': _top(referrers, top_n)
    }

