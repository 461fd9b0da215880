"""Weekly show schedule matching.

Decides whether a show from the station's weekly schedule is on air at a given
moment. Shared by the request and registration analytics so every report
attributes records to shows the same way.

Schedule rows come straight from the TimeSlots sheet:
    Day              expanded descriptor, e.g. "Monday, Tuesday" (preferred)
    Day(s) of Week   raw compact descriptor, e.g. "Mon-Wed, Fri"
    Start / End      "HH:MM" or "HHhMM", 24-hour, no date
    Show             show name
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY


class ScheduleMatcher:
    """Matches points in time against recurring weekly show slots."""

    # Canonical weekly order, Monday first (matches datetime.weekday())
    FULL_DAYS = [
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday"
    ]

    SHORT_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    SHORT_TO_FULL = dict(zip(SHORT_DAYS, FULL_DAYS))

    EXPANDED_DAY_FIELD = "Day"
    RAW_DAY_FIELD = "Day(s) of Week"
    START_FIELD = "Start"
    END_FIELD = "End"
    NAME_FIELD = "Show"

    def expand_day_descriptor(self, descriptor: Optional[str]) -> Set[str]:
        """Resolve a day descriptor into full day names.

        Args:
            descriptor: Comma separated day tokens ("Monday", "Mon", "Mon-Wed")

        Returns:
            Set of canonical full day names; unresolvable tokens are dropped
        """
        days: Set[str] = set()
        if not descriptor:
            return days

        tokens = [t.strip() for t in str(descriptor).split(',')]
        for token in tokens:
            if not token:
                continue

            if '-' in token:
                start_short, end_short = token.split('-')[:2]
                if start_short not in self.SHORT_DAYS or end_short not in self.SHORT_DAYS:
                    continue
                start_index = self.SHORT_DAYS.index(start_short)
                end_index = self.SHORT_DAYS.index(end_short)
                # No wrap-around: "Sat-Mon" contributes nothing
                if start_index <= end_index:
                    days.update(self.FULL_DAYS[start_index:end_index + 1])
            elif token in self.SHORT_TO_FULL:
                days.add(self.SHORT_TO_FULL[token])
            elif token in self.FULL_DAYS:
                days.add(token)

        return days

    def parse_clock_minutes(self, value: Any) -> Optional[int]:
        """Parse "HH:MM" / "HHhMM" into minutes since midnight.

        Only the first two components are read, so seconds are ignored.
        Returns None when two integers cannot be read.
        """
        if value is None:
            return None

        parts = str(value).replace('h', ':', 1).split(':')
        if len(parts) < 2:
            return None

        try:
            hours = int(parts[0].strip())
            minutes = int(parts[1].strip())
        except ValueError:
            return None

        return hours * 60 + minutes

    def get_day_descriptor(self, show: Mapping[str, Any]) -> str:
        """Expanded day field when present, otherwise the raw compact one."""
        value = show.get(self.EXPANDED_DAY_FIELD)
        if value is None:
            value = show.get(self.RAW_DAY_FIELD)
        return '' if value is None else str(value)

    def _resolve_slot(self, show: Mapping[str, Any]) -> Optional[Tuple[Set[str], int, int]]:
        descriptor = self.get_day_descriptor(show)
        start_value = show.get(self.START_FIELD)
        end_value = show.get(self.END_FIELD)

        if not descriptor or not start_value or not end_value:
            return None

        start_minutes = self.parse_clock_minutes(start_value)
        end_minutes = self.parse_clock_minutes(end_value)
        if start_minutes is None or end_minutes is None:
            return None

        return self.expand_day_descriptor(descriptor), start_minutes, end_minutes

    def is_on_air(self, show: Mapping[str, Any], at: datetime) -> bool:
        """Check whether a show's weekly slot contains a point in time.

        Slots whose end is earlier than their start cross midnight: they are
        listed under their start day and keep airing into the next day.

        Args:
            show: Schedule row
            at: Point in time; its local weekday and clock time are used as-is

        Returns:
            True if the show is on air; malformed rows are never on air
        """
        try:
            slot = self._resolve_slot(show)
            if slot is None:
                return False
            scheduled_days, start_minutes, end_minutes = slot

            weekday = at.weekday()
            current_day = self.FULL_DAYS[weekday]
            previous_day = self.FULL_DAYS[(weekday - 1) % 7]
            current_minutes = at.hour * 60 + at.minute
        except (AttributeError, TypeError) as e:
            logger.debug(f"Unusable schedule row or timestamp: {e}")
            return False

        if end_minutes < start_minutes:
            started_today = current_day in scheduled_days and current_minutes >= start_minutes
            carried_over = previous_day in scheduled_days and current_minutes < end_minutes
            return started_today or carried_over

        return current_day in scheduled_days and start_minutes <= current_minutes < end_minutes

    def find_show_on_air(self, shows: Iterable[Mapping[str, Any]], at: datetime) -> Optional[Mapping[str, Any]]:
        """Return the first show in list order that is on air at `at`.

        Overlapping rows are resolved by list order; use find_overlaps() to
        detect them.
        """
        for show in shows:
            if self.is_on_air(show, at):
                return show
        return None

    def shows_on_air(self, shows: Iterable[Mapping[str, Any]], at: datetime) -> List[Mapping[str, Any]]:
        """Every show on air at `at`, in list order."""
        return [show for show in shows if self.is_on_air(show, at)]

    def weekly_intervals(self, show: Mapping[str, Any]) -> List[Tuple[int, int]]:
        """Half-open [start, end) minute-of-week intervals covered by a show.

        Minute 0 is Monday 00:00. A Sunday slot crossing midnight wraps into
        Monday morning.
        """
        slot = self._resolve_slot(show)
        if slot is None:
            return []
        scheduled_days, start_minutes, end_minutes = slot

        intervals = []
        for day in scheduled_days:
            base = self.FULL_DAYS.index(day) * MINUTES_PER_DAY
            if end_minutes < start_minutes:
                lo, hi = base + start_minutes, base + MINUTES_PER_DAY + end_minutes
            else:
                lo, hi = base + start_minutes, base + end_minutes
            if hi <= lo:
                continue
            if hi > MINUTES_PER_WEEK:
                intervals.append((lo, MINUTES_PER_WEEK))
                intervals.append((0, hi - MINUTES_PER_WEEK))
            else:
                intervals.append((lo, hi))

        return sorted(intervals)

    def find_overlaps(self, shows: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Find schedule rows whose slots share at least one minute.

        Returns:
            One entry per overlapping pair, with the first shared weekday/time
        """
        intervals = [self.weekly_intervals(show) for show in shows]
        overlaps = []

        for i in range(len(shows)):
            for j in range(i + 1, len(shows)):
                first_shared = None
                for lo_a, hi_a in intervals[i]:
                    for lo_b, hi_b in intervals[j]:
                        lo = max(lo_a, lo_b)
                        if lo < min(hi_a, hi_b) and (first_shared is None or lo < first_shared):
                            first_shared = lo
                if first_shared is None:
                    continue

                minute_of_day = first_shared % MINUTES_PER_DAY
                overlaps.append({
                    'first': shows[i].get(self.NAME_FIELD),
                    'second': shows[j].get(self.NAME_FIELD),
                    'first_row': shows[i].get('rowIndex'),
                    'second_row': shows[j].get('rowIndex'),
                    'day': self.FULL_DAYS[first_shared // MINUTES_PER_DAY],
                    'time': f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"
                })

        return overlaps

    def format_days(self, days: Iterable[str]) -> str:
        """Join full day names in canonical order ("Monday, Friday")."""
        selected = set(days)
        return ', '.join(day for day in self.FULL_DAYS if day in selected)


# Global matcher instance
schedule_matcher = ScheduleMatcher()


def is_on_air(show: Mapping[str, Any], at: datetime) -> bool:
    """Convenience wrapper around the shared matcher."""
    return schedule_matcher.is_on_air(show, at)


def find_show_on_air(shows: Iterable[Mapping[str, Any]], at: datetime) -> Optional[Mapping[str, Any]]:
    """Convenience wrapper around the shared matcher."""
    return schedule_matcher.find_show_on_air(shows, at)
