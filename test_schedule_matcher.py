"""Tests for weekly show schedule matching.

Run with: python test_schedule_matcher.py (or pytest)
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from schedule_matcher import ScheduleMatcher, schedule_matcher, is_on_air, find_show_on_air

WEEK_OF = {day: 17 + i for i, day in enumerate(ScheduleMatcher.FULL_DAYS)}  # Mon 2025-11-17 .. Sun 2025-11-23


def at(day: str, hour: int, minute: int = 0) -> datetime:
    """A moment in the week of Monday 2025-11-17."""
    return datetime(2025, 11, WEEK_OF[day], hour, minute)


def show(days, start, end, name="Show", raw_days=None, **extra):
    row = {"Show": name, "Start": start, "End": end, **extra}
    if days is not None:
        row["Day"] = days
    if raw_days is not None:
        row["Day(s) of Week"] = raw_days
    return row


def test_week_helper():
    """The helper dates really fall on the named weekdays."""
    for day in ScheduleMatcher.FULL_DAYS:
        assert ScheduleMatcher.FULL_DAYS[at(day, 0).weekday()] == day


def test_day_descriptor_expansion():
    """Ranges, abbreviations and full names resolve to canonical day names."""
    print("\n🧪 Testing day descriptor expansion...")
    expand = schedule_matcher.expand_day_descriptor

    assert expand("Mon-Wed") == {"Monday", "Tuesday", "Wednesday"}
    assert expand("Wed-Mon") == set()
    assert expand("Mon-Wed, Friday") == {"Monday", "Tuesday", "Wednesday", "Friday"}
    assert expand("Sat,Sun") == {"Saturday", "Sunday"}
    assert expand("Monday, Tuesday") == {"Monday", "Tuesday"}
    assert expand("Sun-Sun") == {"Sunday"}
    assert expand("Funday, Mon-Xyz, monday") == set()
    assert expand("Monday-Wednesday") == set()
    assert expand(", ,Thu,") == {"Thursday"}
    assert expand("") == set()
    assert expand(None) == set()
    print("  ✅ descriptors expanded")


def test_clock_parsing():
    """HH:MM and HHhMM parse to minutes since midnight; seconds are ignored."""
    parse = schedule_matcher.parse_clock_minutes

    assert parse("09h00") == 540
    assert parse("09:30") == 570
    assert parse("22:00:00") == 1320
    assert parse("7:05") == 425
    assert parse("22") is None
    assert parse("noon") is None
    assert parse("aa:bb") is None
    assert parse("") is None
    assert parse(None) is None


def test_same_day_slot_boundaries():
    """Start is inclusive, end is exclusive."""
    print("\n🧪 Testing same-day slots...")
    morning = show("Monday", "09h00", "12h00")

    assert is_on_air(morning, at("Monday", 9, 0))
    assert is_on_air(morning, at("Monday", 11, 59))
    assert not is_on_air(morning, at("Monday", 12, 0))
    assert not is_on_air(morning, at("Monday", 8, 59))
    assert not is_on_air(morning, at("Tuesday", 10, 0))
    print("  ✅ boundaries honoured")


def test_back_to_back_shows_do_not_share_boundary():
    first = show("Mon-Fri", "06:00", "09:00", name="Breakfast")
    second = show("Mon-Fri", "09:00", "12:00", name="Midmorning")
    moment = at("Wednesday", 9, 0)

    assert not is_on_air(first, moment)
    assert is_on_air(second, moment)
    assert schedule_matcher.shows_on_air([first, second], moment) == [second]


def test_overnight_slot():
    """A slot crossing midnight keeps airing into the day after its listed day."""
    print("\n🧪 Testing overnight slots...")
    late = show("Fri-Sat", "22:00", "02:00", name="Late Night")

    assert is_on_air(late, at("Saturday", 1, 30))
    assert not is_on_air(late, at("Saturday", 3, 0))
    assert not is_on_air(late, at("Saturday", 2, 0))
    assert is_on_air(late, at("Saturday", 1, 59))
    assert is_on_air(late, at("Friday", 22, 0))
    assert is_on_air(late, at("Friday", 23, 59))
    assert is_on_air(late, at("Saturday", 23, 0))
    assert is_on_air(late, at("Sunday", 0, 30))
    # Thursday isn't listed, so nothing carries over into Friday morning
    assert not is_on_air(late, at("Friday", 1, 0))
    assert not is_on_air(late, at("Friday", 21, 59))
    print("  ✅ overnight slots matched")


def test_overnight_slot_wraps_sunday_into_monday():
    sunday_night = show("Sun", "23:00", "01:00")

    assert is_on_air(sunday_night, at("Monday", 0, 30))
    assert not is_on_air(sunday_night, at("Monday", 1, 0))
    assert is_on_air(sunday_night, at("Sunday", 23, 30))
    assert not is_on_air(sunday_night, at("Sunday", 0, 30))


def test_missing_or_malformed_fields_are_never_on_air():
    """Bad rows report False instead of raising."""
    moment = at("Monday", 10, 0)

    assert not is_on_air(show("Monday", None, "12:00"), moment)
    assert not is_on_air(show("Monday", "09:00", None), moment)
    assert not is_on_air(show("Monday", "", "12:00"), moment)
    assert not is_on_air(show("", "09:00", "12:00"), moment)
    assert not is_on_air(show(None, "09:00", "12:00"), moment)
    assert not is_on_air(show("Monday", "nine", "12:00"), moment)
    assert not is_on_air(show("Monday", "09:00", "12"), moment)
    assert not is_on_air(show("Funday", "09:00", "12:00"), moment)
    assert not is_on_air({}, moment)
    assert not is_on_air(show("Monday", "09:00", "12:00"), None)


def test_expanded_day_field_preferred():
    """The expanded Day column wins over the raw compact column when present."""
    row = show("Tuesday", "09:00", "12:00", raw_days="Mon")
    assert not is_on_air(row, at("Monday", 10, 0))
    assert is_on_air(row, at("Tuesday", 10, 0))

    raw_only = show(None, "09:00", "12:00", raw_days="Mon-Wed")
    assert is_on_air(raw_only, at("Wednesday", 10, 0))

    # An empty expanded value is still "present"
    blank_expanded = show("", "09:00", "12:00", raw_days="Mon")
    assert not is_on_air(blank_expanded, at("Monday", 10, 0))


def test_matching_is_idempotent():
    row = show("Mon-Wed, Friday", "22:00", "02:00")
    moment = at("Saturday", 1, 0)
    results = {is_on_air(row, moment) for _ in range(5)}
    assert results == {True}
    assert row == show("Mon-Wed, Friday", "22:00", "02:00")


def test_first_listed_show_wins():
    """Overlapping rows resolve to the first in schedule order."""
    shows = [
        show("Monday", "09:00", "12:00", name="Morning Drive"),
        show("Monday", "11:00", "13:00", name="Lunch Mix"),
    ]
    moment = at("Monday", 11, 30)

    assert find_show_on_air(shows, moment)["Show"] == "Morning Drive"
    assert [s["Show"] for s in schedule_matcher.shows_on_air(shows, moment)] == ["Morning Drive", "Lunch Mix"]
    assert find_show_on_air(list(reversed(shows)), moment)["Show"] == "Lunch Mix"
    assert find_show_on_air(shows, at("Monday", 14, 0)) is None
    assert find_show_on_air([], moment) is None


def test_overlap_detection():
    """Overlaps are reported with the first shared day and minute."""
    print("\n🧪 Testing overlap detection...")
    shows = [
        show("Monday", "09:00", "12:00", name="Morning Drive", rowIndex=2),
        show("Monday", "11:00", "13:00", name="Lunch Mix", rowIndex=3),
        show("Monday", "13:00", "15:00", name="Afternoon", rowIndex=4),
        show("Sun", "23:00", "01:00", name="Night Owl", rowIndex=5),
        show("Monday", "00:00", "06:00", name="Graveyard", rowIndex=6),
        show("Monday", "bad", "06:00", name="Broken", rowIndex=7),
    ]

    overlaps = schedule_matcher.find_overlaps(shows)
    pairs = {(o["first"], o["second"]) for o in overlaps}
    assert pairs == {("Morning Drive", "Lunch Mix"), ("Night Owl", "Graveyard")}

    drive = next(o for o in overlaps if o["first"] == "Morning Drive")
    assert drive["day"] == "Monday"
    assert drive["time"] == "11:00"
    assert drive["first_row"] == 2 and drive["second_row"] == 3

    night = next(o for o in overlaps if o["first"] == "Night Owl")
    assert night["day"] == "Monday"
    assert night["time"] == "00:00"

    assert schedule_matcher.find_overlaps([]) == []
    print(f"  ✅ {len(overlaps)} overlaps found")


def test_weekly_intervals():
    late = show("Fri", "22:00", "02:00")
    friday = 4 * 24 * 60
    assert schedule_matcher.weekly_intervals(late) == [(friday + 22 * 60, friday + 24 * 60 + 2 * 60)]
    assert schedule_matcher.weekly_intervals(show("Monday", "10:00", "10:00")) == []


def test_format_days():
    assert schedule_matcher.format_days({"Friday", "Monday"}) == "Monday, Friday"
    assert schedule_matcher.format_days(schedule_matcher.expand_day_descriptor("Sat-Sun, Wed")) == \
        "Wednesday, Saturday, Sunday"
    assert schedule_matcher.format_days([]) == ""


def main():
    """Run all schedule matcher tests."""
    print("=" * 60)
    print("🧪 SCHEDULE MATCHER TESTS")
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
