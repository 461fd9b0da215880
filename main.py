"""Main entry point for the station dashboard."""

import argparse
import json
import sys
import logging
from datetime import datetime

from config import Config
from scheduler import scheduler, get_local_datetime
from schedule_matcher import schedule_matcher
import analytics
from sheet_admin import sheet_admin, InvalidRowError
from sheet_service import SheetServiceError
from version import __description__, get_version_string

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('station_dashboard.log')
    ]
)
logger = logging.getLogger(__name__)


def load_records() -> bool:
    """Fetch the dashboard sheets once for a one-shot command."""
    if not Config.sheet_service_configured():
        logger.error("SHEET_SCRIPT_URL is not configured")
        return False
    return scheduler.refresh()


def run_scheduler():
    """Run the refresh scheduler service."""
    logger.info("Starting scheduler service...")

    try:
        scheduler.start()
        logger.info("Scheduler started successfully")

        # Keep running
        import time
        while scheduler.running:
            time.sleep(60)

    except KeyboardInterrupt:
        logger.info("Scheduler interrupted by user")
    finally:
        scheduler.stop()


def run_web_server(with_scheduler: bool = False):
    """Run the web server, optionally with background refresh."""
    from web_app import start_web_server

    if with_scheduler:
        scheduler.start()
        logger.info("Web server starting with scheduler enabled")

    try:
        start_web_server()
    finally:
        if with_scheduler:
            scheduler.stop()


def show_on_air(at: str = None) -> bool:
    """Print the show on air at a given time (default: now)."""
    if at:
        try:
            moment = datetime.fromisoformat(at)
        except ValueError:
            logger.error(f"Invalid timestamp: {at}. Use YYYY-MM-DDTHH:MM")
            return False
    else:
        moment = get_local_datetime().replace(tzinfo=None)

    if not load_records():
        return False

    shows = scheduler.get_snapshot()['schedule']
    matches = schedule_matcher.shows_on_air(shows, moment)

    when = moment.strftime('%A %Y-%m-%d %H:%M')
    if not matches:
        print(f"\nNothing on air {when}")
        return True

    first = matches[0]
    print(f"\nOn air {when}: {first.get('Show')} ({first.get('Presenter') or 'no presenter'})")
    if len(matches) > 1:
        others = ', '.join(str(m.get('Show')) for m in matches[1:])
        print(f"⚠ Also scheduled: {others} (first listed wins)")
    return True


def print_report(kind: str, top_n: int = None) -> bool:
    """Print one of the analytics reports as JSON."""
    if not load_records():
        return False

    snapshot = scheduler.get_snapshot()
    if kind == 'overview':
        report = analytics.overview(snapshot['registrations'], snapshot['requests'], top_n=top_n)
    elif kind == 'requests':
        report = analytics.request_analytics(snapshot['requests'], snapshot['schedule'], top_n=top_n)
    else:
        report = analytics.registration_analytics(snapshot['registrations'], snapshot['schedule'], top_n=top_n)

    print(json.dumps(report, indent=2, ensure_ascii=False))
    return True


def check_schedule() -> bool:
    """Report overlapping schedule rows. Fails when any are found."""
    if not load_records():
        return False

    overlaps = schedule_matcher.find_overlaps(scheduler.get_snapshot()['schedule'])
    if not overlaps:
        print("\n✓ No overlapping shows in the schedule")
        return True

    print(f"\n✗ {len(overlaps)} overlapping show pair(s):")
    for o in overlaps:
        print(f"  - '{o['first']}' (row {o['first_row']}) and '{o['second']}' (row {o['second_row']}) "
              f"from {o['day']} {o['time']}")
    return False


def announce(title: str, content: str, category: str = 'General', date: str = None) -> bool:
    """Create an announcement row."""
    if not Config.sheet_service_configured():
        logger.error("SHEET_SCRIPT_URL is not configured")
        return False

    row = {'Title': title, 'Content': content, 'Category': category}
    if date:
        row['Date'] = date

    try:
        saved = sheet_admin.save_announcement(row)
    except (InvalidRowError, SheetServiceError) as e:
        logger.error(f"Announcement not saved: {e}")
        return False

    print(f"\n✓ Announcement '{saved['row']['Title']}' published for {saved['row']['Date']}")
    return True


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=f"{Config.STATION_NAME}: {__description__}")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Web server command
    web_parser = subparsers.add_parser('web', help='Run the API server')
    web_parser.add_argument('--with-scheduler', action='store_true', help='Refresh records in the background')

    # Scheduler command
    subparsers.add_parser('schedule', help='Run the refresh scheduler only')

    # On-air lookup
    on_air_parser = subparsers.add_parser('on-air', help='Show which programme is on air')
    on_air_parser.add_argument('--at', help='Timestamp in YYYY-MM-DDTHH:MM format (default: now)')

    # Reports
    report_parser = subparsers.add_parser('report', help='Print an analytics report')
    report_parser.add_argument('kind', choices=['overview', 'requests', 'registrations'])
    report_parser.add_argument('--top', type=int, help=f'Entries per top list (default: {Config.TOP_N})')

    # Schedule data-quality check
    subparsers.add_parser('check-schedule', help='List overlapping shows in the schedule')

    # Announcements
    announce_parser = subparsers.add_parser('announce', help='Publish an announcement')
    announce_parser.add_argument('title')
    announce_parser.add_argument('content')
    announce_parser.add_argument('--category', default='General')
    announce_parser.add_argument('--date', help='YYYY-MM-DD (default: today)')

    # All-in-one command
    subparsers.add_parser('run', help='Run the API server with background refresh')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    logger.info(get_version_string())

    if args.command == 'web':
        run_web_server(with_scheduler=args.with_scheduler)

    elif args.command == 'schedule':
        run_scheduler()

    elif args.command == 'on-air':
        sys.exit(0 if show_on_air(args.at) else 1)

    elif args.command == 'report':
        sys.exit(0 if print_report(args.kind, args.top) else 1)

    elif args.command == 'check-schedule':
        sys.exit(0 if check_schedule() else 1)

    elif args.command == 'announce':
        sys.exit(0 if announce(args.title, args.content, args.category, args.date) else 1)

    elif args.command == 'run':
        run_web_server(with_scheduler=True)


if __name__ == "__main__":
    main()
