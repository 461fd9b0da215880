"""Helpers for song request and registration rows read from the record sheets."""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from config import Config

logger = logging.getLogger(__name__)

PRIORITY_HIGH = 'High'
PRIORITY_MEDIUM = 'Medium'
PRIORITY_LOW = 'Low'
PRIORITIES = [PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW]

DEFAULT_REGISTRATION_TIME = '00:00:00'


def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return '' if value is None else str(value)


def parse_record_timestamp(date_value: Any, time_value: Any, default_time: Optional[str] = None) -> Optional[datetime]:
    """Combine a sheet date cell and time cell into a naive local datetime.

    Sheet cells arrive either as plain text ("2025-11-16", "14:30:00") or as
    ISO strings ("2025-11-16T00:00:00.000Z", "1970-01-01T14:30:00.000Z");
    only the date part of the former and the clock part of the latter are used.

    Args:
        date_value: Date cell
        time_value: Time cell
        default_time: Clock time used when the time cell is empty; without
            it a missing time means no timestamp

    Returns:
        datetime, or None if the cells can't be combined
    """
    if not date_value:
        return None

    raw_date = str(date_value)
    date_part = raw_date.split('T')[0] if 'T' in raw_date else raw_date

    if time_value:
        raw_time = str(time_value)
        if 'T' in raw_time:
            time_part = raw_time.split('T')[1][:8]
        else:
            # "14:30:00 GMT+2" -> "14:30:00"
            time_part = raw_time.split(' ')[0][:8]
    elif default_time:
        time_part = default_time
    else:
        return None

    try:
        return datetime.fromisoformat(f"{date_part.strip()}T{time_part}")
    except ValueError:
        return None


def request_timestamp(row: Mapping[str, Any]) -> Optional[datetime]:
    """When a song request was made (Date + Time, both required)."""
    return parse_record_timestamp(row.get('Date'), row.get('Time'))


def registration_timestamp(row: Mapping[str, Any]) -> Optional[datetime]:
    """When a listener registered; a missing time counts as midnight."""
    return parse_record_timestamp(
        row.get('Registration Date'),
        row.get('Registration Time'),
        default_time=DEFAULT_REGISTRATION_TIME
    )


def request_priority(row: Mapping[str, Any]) -> str:
    """Triage priority of a song request.

    High for special occasions (birthday, anniversary by default), Medium when
    there is a dedication, Low otherwise.
    """
    occasion = _text(row, 'Occasion').lower()
    if any(keyword in occasion for keyword in Config.HIGH_PRIORITY_OCCASIONS):
        return PRIORITY_HIGH
    if _text(row, 'Dedication to').strip():
        return PRIORITY_MEDIUM
    return PRIORITY_LOW


def dedupe_requests(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse repeated submissions of the same request.

    Two rows are the same request when they share the date, requester and
    song (case-insensitive); the most recently written row (highest
    rowIndex) is kept.
    """
    unique: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        key = '|'.join([
            _text(row, 'Date'),
            _text(row, 'Requester Name').lower().strip(),
            _text(row, 'Song requested').lower().strip()
        ])
        current = unique.get(key)
        if current is None or (current.get('rowIndex') or 0) < (row.get('rowIndex') or 0):
            unique[key] = row

    if len(unique) < len(rows):
        logger.debug(f"Dropped {len(rows) - len(unique)} duplicate request rows")

    return list(unique.values())


def _request_date(row: Mapping[str, Any]) -> date:
    raw = _text(row, 'Date')
    try:
        return date.fromisoformat(raw.split('T')[0].strip())
    except ValueError:
        return date.min


def filter_requests(rows: List[Dict[str, Any]], show: Optional[str] = None,
                    priority: Optional[str] = None, query: Optional[str] = None) -> List[Dict[str, Any]]:
    """Request triage list: optional show/priority/search filters, newest first.

    Rows whose date can't be read sort last.
    """
    results = []
    needle = (query or '').strip().lower()

    for row in rows:
        if show and row.get('Show') != show:
            continue
        if priority and request_priority(row) != priority:
            continue
        if needle:
            requester = _text(row, 'Requester Name').lower()
            song = _text(row, 'Song requested').lower()
            if needle not in requester and needle not in song:
                continue
        results.append(row)

    return sorted(results, key=_request_date, reverse=True)
