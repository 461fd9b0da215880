"""JSON API for the station dashboard."""

from fastapi import FastAPI, HTTPException, Depends, Body
from fastapi.security import HTTPBasic, HTTPBasicCredentials
import uvicorn
from datetime import datetime
from typing import Any, Dict, Optional
import logging

from config import Config
from scheduler import scheduler, get_local_datetime
from schedule_matcher import schedule_matcher
from sheet_records import PRIORITIES, filter_requests
from sheet_admin import sheet_admin, InvalidRowError
from sheet_service import SheetServiceError
import analytics
from version import __version__, COMMIT as APP_COMMIT, BUILD_TIME as APP_BUILD_TIME, get_version_string

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

logger.info(f"Starting {get_version_string()}")
logger.info(f"Config.TIMEZONE: {Config.TIMEZONE}")
logger.info(f"Record service configured: {Config.sheet_service_configured()}")

app = FastAPI(title=f"{Config.STATION_NAME} Dashboard API", version=__version__)

security = HTTPBasic()


def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """Reject requests that don't carry the configured admin credentials."""
    if not Config.check_credentials(credentials.username, credentials.password):
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Basic"}
        )
    return credentials.username


def get_snapshot():
    """Current snapshot, loading it on first use."""
    if Config.sheet_service_configured():
        scheduler.ensure_loaded()
    return scheduler.get_snapshot()


def parse_at(at: Optional[str]) -> datetime:
    """Parse an ISO timestamp query parameter; default is station-local now."""
    if not at:
        # Local wall-clock components are what the matcher compares
        return get_local_datetime().replace(tzinfo=None)
    try:
        return datetime.fromisoformat(at)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid timestamp: {at}. Use ISO format, e.g. 2025-11-15T01:30")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "scheduler": "running" if scheduler.running else "stopped",
        "records_loaded": scheduler.has_data(),
        "timestamp": datetime.now().isoformat()
    }


@app.get("/api/status")
def api_status():
    """Snapshot sizes and refresh state."""
    snapshot = scheduler.get_snapshot()
    refreshed_at = snapshot['refreshed_at']
    return {
        "station": Config.STATION_NAME,
        "version": __version__,
        "commit": APP_COMMIT,
        "build_time": APP_BUILD_TIME,
        "scheduler_running": scheduler.running,
        "refresh_minutes": Config.ANALYTICS_REFRESH_MINUTES,
        "refreshed_at": refreshed_at.isoformat() if refreshed_at else None,
        "last_error": scheduler.last_error,
        "counts": {
            "requests": len(snapshot['requests']),
            "registrations": len(snapshot['registrations']),
            "shows": len(snapshot['schedule'])
        }
    }


@app.get("/api/shows/on-air")
def api_on_air(at: Optional[str] = None):
    """Which show is on air at `at` (default: now)."""
    moment = parse_at(at)
    shows = get_snapshot()['schedule']
    matches = schedule_matcher.shows_on_air(shows, moment)
    return {
        "at": moment.isoformat(),
        "show": matches[0].get('Show') if matches else None,
        "presenter": matches[0].get('Presenter') if matches else None,
        "matches": [m.get('Show') for m in matches],
        "ambiguous": len(matches) > 1
    }


@app.get("/api/shows/overlaps")
def api_overlaps():
    """Schedule rows whose slots overlap."""
    shows = get_snapshot()['schedule']
    overlaps = schedule_matcher.find_overlaps(shows)
    return {"count": len(overlaps), "overlaps": overlaps}


@app.get("/api/analytics/overview")
def api_analytics_overview(top: Optional[int] = None):
    snapshot = get_snapshot()
    return analytics.overview(snapshot['registrations'], snapshot['requests'], top_n=top)


@app.get("/api/analytics/requests")
def api_analytics_requests(top: Optional[int] = None):
    snapshot = get_snapshot()
    return analytics.request_analytics(snapshot['requests'], snapshot['schedule'], top_n=top)


@app.get("/api/analytics/registrations")
def api_analytics_registrations(top: Optional[int] = None):
    snapshot = get_snapshot()
    return analytics.registration_analytics(snapshot['registrations'], snapshot['schedule'], top_n=top)


@app.get("/api/requests")
def api_requests(show: Optional[str] = None, priority: Optional[str] = None, q: Optional[str] = None):
    """Song request triage list, newest first."""
    if priority and priority not in PRIORITIES:
        raise HTTPException(status_code=400, detail=f"priority must be one of {', '.join(PRIORITIES)}")
    rows = filter_requests(get_snapshot()['requests'], show=show, priority=priority, query=q)
    return {"count": len(rows), "requests": rows}


@app.post("/api/refresh")
def api_refresh(username: str = Depends(require_admin)):
    """Force a snapshot refresh (admin)."""
    if not Config.sheet_service_configured():
        raise HTTPException(status_code=503, detail="Record service URL is not configured")

    logger.info(f"Manual refresh requested by {username}")
    if not scheduler.refresh():
        raise HTTPException(status_code=502, detail=f"Refresh failed: {scheduler.last_error}")

    return api_status()


def run_sheet_action(action, *args):
    """Run a sheet operation, mapping failures onto HTTP errors."""
    if not Config.sheet_service_configured():
        raise HTTPException(status_code=503, detail="Record service URL is not configured")
    try:
        return action(*args)
    except InvalidRowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SheetServiceError as e:
        logger.error(f"Sheet write failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/api/shows")
def api_list_shows(username: str = Depends(require_admin)):
    """Schedule rows as stored in the sheet."""
    shows = run_sheet_action(sheet_admin.list_shows)
    return {"count": len(shows), "shows": shows}


@app.post("/api/shows")
def api_create_show(row: Dict[str, Any] = Body(...), username: str = Depends(require_admin)):
    logger.info(f"Show create requested by {username}")
    return run_sheet_action(sheet_admin.save_show, row)


@app.put("/api/shows/{row_index}")
def api_update_show(row_index: int, row: Dict[str, Any] = Body(...), username: str = Depends(require_admin)):
    logger.info(f"Show row {row_index} update requested by {username}")
    return run_sheet_action(sheet_admin.save_show, row, row_index)


@app.delete("/api/shows/{row_index}")
def api_delete_show(row_index: int, username: str = Depends(require_admin)):
    logger.info(f"Show row {row_index} delete requested by {username}")
    return {"deleted": row_index, "result": run_sheet_action(sheet_admin.delete_show, row_index)}


@app.get("/api/announcements")
def api_list_announcements(username: str = Depends(require_admin)):
    """Announcements, newest first."""
    items = run_sheet_action(sheet_admin.list_announcements)
    return {"count": len(items), "announcements": items}


@app.post("/api/announcements")
def api_create_announcement(row: Dict[str, Any] = Body(...), username: str = Depends(require_admin)):
    logger.info(f"Announcement create requested by {username}")
    return run_sheet_action(sheet_admin.save_announcement, row)


@app.put("/api/announcements/{row_index}")
def api_update_announcement(row_index: int, row: Dict[str, Any] = Body(...),
                            username: str = Depends(require_admin)):
    logger.info(f"Announcement row {row_index} update requested by {username}")
    return run_sheet_action(sheet_admin.save_announcement, row, row_index)


@app.delete("/api/announcements/{row_index}")
def api_delete_announcement(row_index: int, username: str = Depends(require_admin)):
    logger.info(f"Announcement row {row_index} delete requested by {username}")
    return {"deleted": row_index, "result": run_sheet_action(sheet_admin.delete_announcement, row_index)}


def start_web_server():
    """Start the web server."""
    logger.info(f"Starting web server on {Config.API_HOST}:{Config.API_PORT}")
    uvicorn.run(app, host=Config.API_HOST, port=Config.API_PORT, log_level="info")


if __name__ == "__main__":
    start_web_server()
