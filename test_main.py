"""Tests for the command line entry points.

Run with: python test_main.py (or pytest)
"""

import io
import json
import sys
from contextlib import contextmanager, redirect_stdout
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config import Config
from scheduler import scheduler
from sheet_service import SheetServiceError
import main as cli

SCHEDULE = [
    {"rowIndex": 2, "Day": "Monday", "Show": "Morning Drive", "Presenter": "Anna", "Start": "09:00", "End": "12:00"},
    {"rowIndex": 3, "Day": "Monday", "Show": "Lunch Mix", "Presenter": "Ben", "Start": "11:00", "End": "13:00"},
    {"rowIndex": 4, "Day": "Friday, Saturday", "Show": "Late Night", "Presenter": "Cleo",
     "Start": "22:00", "End": "02:00"},
]

CLEAN_SCHEDULE = [SCHEDULE[0], SCHEDULE[2]]

REQUESTS = [
    {"rowIndex": 2, "Date": "2025-11-17", "Time": "09:30:00", "Requester Name": "Thandi",
     "Song requested": "Jerusalema", "Dedication to": "", "Occasion": "Birthday"},
    {"rowIndex": 3, "Date": "2025-11-22", "Time": "01:00:00", "Requester Name": "Sam",
     "Song requested": "Pata Pata", "Dedication to": "Mom", "Occasion": ""},
]


class FakeSheetService:
    def __init__(self, schedule, error=None):
        self.sheets = {
            Config.REQUESTS_SHEET: REQUESTS,
            Config.REGISTRATIONS_SHEET: [],
            Config.SCHEDULE_SHEET: schedule,
        }
        self.error = error
        self.fetched = []
        self.created = []

    def fetch_data(self, sheet_name):
        self.fetched.append(sheet_name)
        if self.error:
            raise SheetServiceError(self.error)
        return list(self.sheets.get(sheet_name, []))

    def create_row(self, sheet_name, row):
        if self.error:
            raise SheetServiceError(self.error)
        self.created.append((sheet_name, dict(row)))
        return {"rowIndex": 10}


@contextmanager
def stubbed_service(schedule=SCHEDULE, error=None, url="https://script.example.com/exec"):
    service = FakeSheetService(schedule, error=error)
    saved = (Config.SHEET_SCRIPT_URL, scheduler.service)
    try:
        Config.SHEET_SCRIPT_URL = url
        scheduler.service = service
        yield service
    finally:
        Config.SHEET_SCRIPT_URL, scheduler.service = saved
        scheduler.last_error = None


def run_cli(*argv):
    """Run main() with the given arguments; returns (exit code, stdout)."""
    saved_argv = sys.argv
    out = io.StringIO()
    code = 0
    try:
        sys.argv = ["station-dashboard"] + list(argv)
        with redirect_stdout(out):
            cli.main()
    except SystemExit as e:
        code = e.code
    finally:
        sys.argv = saved_argv
    return code, out.getvalue()


def test_on_air_rejects_bad_timestamp():
    """An unreadable --at fails before anything is fetched."""
    print("\n🧪 Testing on-air command...")
    with stubbed_service() as service:
        assert cli.show_on_air("yesterday") is False
        code, _ = run_cli("on-air", "--at", "25/11/2025 10:00")
        assert code == 1
        assert service.fetched == []


def test_on_air_prints_show():
    with stubbed_service():
        code, output = run_cli("on-air", "--at", "2025-11-22T01:30")
        assert code == 0
        assert "Late Night (Cleo)" in output

        code, output = run_cli("on-air", "--at", "2025-11-17T11:30")
        assert "Morning Drive" in output
        assert "Also scheduled: Lunch Mix" in output

        code, output = run_cli("on-air", "--at", "2025-11-18T03:00")
        assert code == 0
        assert "Nothing on air" in output
    print("  ✅ on-air lookups printed")


def test_check_schedule_exit_code():
    """check-schedule fails while any shows overlap."""
    with stubbed_service(SCHEDULE):
        code, output = run_cli("check-schedule")
        assert code == 1
        assert "'Morning Drive' (row 2) and 'Lunch Mix' (row 3) from Monday 11:00" in output

    with stubbed_service(CLEAN_SCHEDULE):
        code, output = run_cli("check-schedule")
        assert code == 0
        assert "No overlapping shows" in output


def test_commands_fail_without_records():
    with stubbed_service(url="") as service:
        assert cli.check_schedule() is False
        assert cli.print_report("overview") is False
        assert service.fetched == []

    with stubbed_service(error="quota exceeded"):
        code, _ = run_cli("check-schedule")
        assert code == 1
        code, _ = run_cli("report", "requests")
        assert code == 1


def test_report_prints_json():
    with stubbed_service(CLEAN_SCHEDULE):
        code, output = run_cli("report", "requests", "--top", "1")
        assert code == 0
        report = json.loads(output)
        assert report["total"] == 2
        assert report["top_songs"] == [["Jerusalema", 1]]
        assert report["top_shows"] == [["Morning Drive", 1]]


def test_announce_command():
    with stubbed_service() as service:
        code, output = run_cli("announce", "Festival", "Live from the park", "--date", "2025-11-29")
        assert code == 0
        assert "Festival" in output
        sheet, row = service.created[-1]
        assert sheet == Config.ANNOUNCEMENTS_SHEET
        assert row["Date"] == "2025-11-29"
        assert row["Category"] == "General"

        assert cli.announce("", "untitled") is False

    with stubbed_service(error="timeout"):
        code, _ = run_cli("announce", "Festival", "Live from the park")
        assert code == 1


def main():
    """Run all CLI tests."""
    print("=" * 60)
    print("🧪 COMMAND LINE TESTS")
    print("=" * 60)

    tests = [v for k, v in sorted(globals().items()) if k.startswith("test_") and callable(v)]
    failed = 0
    for test in tests:
        try:
            test()
            print(f"  ✅ PASS - {test.__name__}")
        except AssertionError as e:
            failed += 1
            print(f"  ❌ FAIL - {test.__name__}: {e}")

    print(f"\n  Total: {len(tests) - failed}/{len(tests)} passed")
    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
