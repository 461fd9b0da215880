"""Admin edits to the show schedule and announcement sheets.

Writes go straight to the record service; the dashboard snapshot is then
refreshed so analytics pick up schedule changes.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from config import Config
from scheduler import DashboardScheduler, scheduler, get_local_datetime
from schedule_matcher import schedule_matcher

logger = logging.getLogger(__name__)

ANNOUNCEMENT_DEFAULTS = {
    'Title': '',
    'Content': '',
    'Category': 'General',
    'MediaURL': ''
}


class InvalidRowError(ValueError):
    """Raised when a submitted row can't be written."""


def normalize_show(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Prepare a schedule row for writing.

    The day descriptor (expanded or compact) is rewritten as full day names in
    weekly order under `Day`; the compact column is owned by the sheet and is
    never sent.

    Raises:
        InvalidRowError: no name, no resolvable day or unreadable times
    """
    payload = dict(row)
    descriptor = payload.get(schedule_matcher.EXPANDED_DAY_FIELD)
    if descriptor is None:
        descriptor = payload.get(schedule_matcher.RAW_DAY_FIELD)
    payload.pop(schedule_matcher.RAW_DAY_FIELD, None)

    days = schedule_matcher.expand_day_descriptor(descriptor)
    if not days:
        raise InvalidRowError(f"No valid days in '{descriptor}'")
    payload[schedule_matcher.EXPANDED_DAY_FIELD] = schedule_matcher.format_days(days)

    if not str(payload.get(schedule_matcher.NAME_FIELD) or '').strip():
        raise InvalidRowError("Show name is required")

    for field in (schedule_matcher.START_FIELD, schedule_matcher.END_FIELD):
        if schedule_matcher.parse_clock_minutes(payload.get(field)) is None:
            raise InvalidRowError(f"{field} must be HH:MM or HHhMM, got '{payload.get(field)}'")

    return payload


def _sort_key_date(row: Mapping[str, Any]) -> str:
    return str(row.get('Date') or '')


class SheetAdmin:
    """Create, update and delete rows in the schedule and announcement sheets."""

    def __init__(self, dashboard: Optional[DashboardScheduler] = None):
        self.dashboard = dashboard or scheduler

    @property
    def service(self):
        return self.dashboard.service

    def _after_write(self, action: str, sheet_name: str):
        logger.info(f"✏️ {action} on '{sheet_name}'")
        if not self.dashboard.refresh():
            logger.warning(f"Snapshot not refreshed after {action} on '{sheet_name}'")

    # Shows

    def list_shows(self) -> List[Dict[str, Any]]:
        return self.service.fetch_data(Config.SCHEDULE_SHEET)

    def save_show(self, row: Mapping[str, Any], row_index: Optional[int] = None) -> Dict[str, Any]:
        """Create a show (no row_index) or update one in place.

        Returns:
            The written row and the schedule overlaps it leaves behind
        """
        payload = normalize_show(row)
        if row_index is not None:
            payload['rowIndex'] = row_index
        else:
            payload.pop('rowIndex', None)

        # Only overlaps involving this row, against the schedule as it will look after the write
        others = [s for s in self.dashboard.get_snapshot()['schedule']
                  if row_index is None or s.get('rowIndex') != row_index]
        overlaps = []
        for other in others:
            overlaps.extend(schedule_matcher.find_overlaps([other, payload]))
        for overlap in overlaps:
            logger.warning(f"⚠️ Schedule overlap after edit: '{overlap['first']}' and "
                           f"'{overlap['second']}' from {overlap['day']} {overlap['time']}")

        if row_index is not None:
            result = self.service.update_row(Config.SCHEDULE_SHEET, payload)
            self._after_write('update', Config.SCHEDULE_SHEET)
        else:
            result = self.service.create_row(Config.SCHEDULE_SHEET, payload)
            self._after_write('create', Config.SCHEDULE_SHEET)

        return {'row': payload, 'result': result, 'overlaps': overlaps}

    def delete_show(self, row_index: int) -> Any:
        result = self.service.delete_row(Config.SCHEDULE_SHEET, row_index)
        self._after_write('delete', Config.SCHEDULE_SHEET)
        return result

    # Announcements

    def list_announcements(self) -> List[Dict[str, Any]]:
        """Announcements, newest first."""
        rows = self.service.fetch_data(Config.ANNOUNCEMENTS_SHEET)
        return sorted(rows, key=_sort_key_date, reverse=True)

    def save_announcement(self, row: Mapping[str, Any], row_index: Optional[int] = None) -> Dict[str, Any]:
        """Create an announcement (dated today by default) or update one."""
        if row_index is None:
            payload = dict(ANNOUNCEMENT_DEFAULTS)
            payload['Date'] = get_local_datetime().date().isoformat()
            payload.update({k: v for k, v in row.items() if v is not None})
            payload.pop('rowIndex', None)
        else:
            payload = dict(row)
            payload['rowIndex'] = row_index

        if not str(payload.get('Title') or '').strip():
            raise InvalidRowError("Title is required")

        if row_index is not None:
            result = self.service.update_row(Config.ANNOUNCEMENTS_SHEET, payload)
            logger.info(f"✏️ update on '{Config.ANNOUNCEMENTS_SHEET}' row {row_index}")
        else:
            result = self.service.create_row(Config.ANNOUNCEMENTS_SHEET, payload)
            logger.info(f"✏️ create on '{Config.ANNOUNCEMENTS_SHEET}'")

        return {'row': payload, 'result': result}

    def delete_announcement(self, row_index: int) -> Any:
        result = self.service.delete_row(Config.ANNOUNCEMENTS_SHEET, row_index)
        logger.info(f"🗑️ delete on '{Config.ANNOUNCEMENTS_SHEET}' row {row_index}")
        return result


# Global admin instance
sheet_admin = SheetAdmin()
