"""Periodic refresh of the dashboard's in-memory record snapshot."""

import schedule
import time
import threading
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from config import Config
from schedule_matcher import schedule_matcher
from sheet_records import dedupe_requests
from sheet_service import sheet_service, SheetService, SheetServiceError

logger = logging.getLogger(__name__)


def get_local_datetime() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(Config.TIMEZONE)


class DashboardScheduler:
    """Keeps requests, registrations and the show schedule fresh in memory.

    Each refresh fetches every sheet and swaps the whole snapshot in one step,
    so readers never see a mix of old and new record sets.
    """

    def __init__(self, service: Optional[SheetService] = None):
        self.service = service or sheet_service
        self.running = False
        self.scheduler_thread = None
        self.jobs = schedule.Scheduler()
        self._lock = threading.Lock()
        self._load_lock = threading.Lock()
        self.last_attempt = None
        self._snapshot = self._empty_snapshot()
        self.last_error = None

    @staticmethod
    def _empty_snapshot() -> Dict[str, Any]:
        return {'requests': [], 'registrations': [], 'schedule': [], 'refreshed_at': None}

    def get_snapshot(self) -> Dict[str, Any]:
        """Current snapshot (shared lists; treat as read-only)."""
        with self._lock:
            return dict(self._snapshot)

    def load_snapshot(self, requests: Optional[List[Dict]] = None, registrations: Optional[List[Dict]] = None,
                      shows: Optional[List[Dict]] = None, refreshed_at: Optional[datetime] = None):
        """Replace the snapshot wholesale."""
        snapshot = {
            'requests': list(requests or []),
            'registrations': list(registrations or []),
            'schedule': list(shows or []),
            'refreshed_at': refreshed_at or get_local_datetime()
        }
        with self._lock:
            self._snapshot = snapshot

    def has_data(self) -> bool:
        with self._lock:
            return self._snapshot['refreshed_at'] is not None

    def refresh(self) -> bool:
        """Fetch all dashboard sheets and replace the snapshot.

        On failure the previous snapshot is kept.
        """
        self.last_attempt = time.monotonic()
        sheets = Config.get_dashboard_sheets()
        try:
            requests = dedupe_requests(self.service.fetch_data(sheets['requests']))
            registrations = self.service.fetch_data(sheets['registrations'])
            shows = self.service.fetch_data(sheets['schedule'])
        except SheetServiceError as e:
            self.last_error = str(e)
            logger.error(f"❌ Dashboard refresh failed, keeping previous snapshot: {e}")
            return False

        for overlap in schedule_matcher.find_overlaps(shows):
            logger.warning(
                f"⚠️ Schedule overlap: '{overlap['first']}' and '{overlap['second']}' "
                f"both on air {overlap['day']} {overlap['time']}; first listed wins"
            )

        self.load_snapshot(requests=requests, registrations=registrations, shows=shows)
        self.last_error = None
        logger.info(f"✅ Snapshot refreshed: {len(requests)} requests, "
                    f"{len(registrations)} registrations, {len(shows)} shows")
        return True

    def ensure_loaded(self) -> bool:
        """Load the first snapshot on demand.

        Concurrent callers share one attempt, and a failed attempt is not
        retried until REFRESH_RETRY_SECONDS have passed.
        """
        if self.has_data():
            return True

        with self._load_lock:
            if self.has_data():
                return True
            if self.last_attempt is not None and \
                    time.monotonic() - self.last_attempt < Config.REFRESH_RETRY_SECONDS:
                return False
            return self.refresh()

    def start(self):
        """Start the refresh scheduler."""

        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        minutes = Config.ANALYTICS_REFRESH_MINUTES
        logger.info(f"📅 Starting dashboard refresh every {minutes} minutes")

        self.jobs.clear()
        self.jobs.every(minutes).minutes.do(self.refresh).tag('refresh')

        # Load immediately rather than waiting for the first interval
        self.refresh()

        self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
        self.scheduler_thread.start()

        logger.info(f"🔄 Scheduler thread running: {self.scheduler_thread.is_alive()}")

    def stop(self):
        """Stop the refresh scheduler."""

        logger.info("Stopping dashboard scheduler...")
        self.running = False
        self.jobs.clear()

        if self.scheduler_thread and self.scheduler_thread.is_alive():
            self.scheduler_thread.join(timeout=5)

        logger.info("Dashboard scheduler stopped")

    def _run_scheduler(self):
        """Main scheduler loop."""

        while self.running:
            try:
                self.jobs.run_pending()
                time.sleep(1)
            except Exception as e:
                logger.error(f"Scheduler error: {e}")
                time.sleep(60)  # Wait a minute before retrying


# Global scheduler instance
scheduler = DashboardScheduler()
