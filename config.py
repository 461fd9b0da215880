"""Configuration management for the station dashboard."""

import os
import hmac
import logging
from dotenv import load_dotenv
import pytz

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

PLACEHOLDER_URL_MARKER = 'PASTE_YOUR'


class Config:
    """Application configuration."""

    STATION_NAME = os.getenv('STATION_NAME', 'Eden FM')

    # Spreadsheet-backed record service (Apps Script web app)
    SHEET_SCRIPT_URL = os.getenv('SHEET_SCRIPT_URL', '')
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 30))

    # Sheet names
    REQUESTS_SHEET = os.getenv('REQUESTS_SHEET', 'Listeners Choice')
    REGISTRATIONS_SHEET = os.getenv('REGISTRATIONS_SHEET', 'Registered Users')
    SCHEDULE_SHEET = os.getenv('SCHEDULE_SHEET', 'TimeSlots')
    ANNOUNCEMENTS_SHEET = os.getenv('ANNOUNCEMENTS_SHEET', 'Announcements')

    # Timezone
    TIMEZONE = pytz.timezone(os.getenv('TZ', 'Africa/Johannesburg'))

    # Analytics
    ANALYTICS_REFRESH_MINUTES = int(os.getenv('ANALYTICS_REFRESH_MINUTES', 5))
    # Minimum wait before retrying a failed first load from a web request
    REFRESH_RETRY_SECONDS = int(os.getenv('REFRESH_RETRY_SECONDS', 60))
    TOP_N = int(os.getenv('TOP_N', 5))
    HIGH_PRIORITY_OCCASIONS = [
        o.strip().lower()
        for o in os.getenv('HIGH_PRIORITY_OCCASIONS', 'birthday,anniversary').split(',')
        if o.strip()
    ]

    # Admin credentials (no defaults; set in .env)
    ADMIN_USERNAME = os.getenv('ADMIN_USERNAME', '')
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD', '')

    # API Configuration
    API_HOST = os.getenv('API_HOST', '0.0.0.0')
    # Allow the platform's injected PORT to act as fallback if API_PORT not explicitly set
    API_PORT = int(os.getenv('API_PORT') or os.getenv('PORT', 8001))

    @classmethod
    def sheet_service_configured(cls) -> bool:
        """True when a usable record service URL is set."""
        return bool(cls.SHEET_SCRIPT_URL) and PLACEHOLDER_URL_MARKER not in cls.SHEET_SCRIPT_URL

    @classmethod
    def get_dashboard_sheets(cls):
        """Sheets refreshed for analytics, keyed by snapshot field."""
        return {
            'requests': cls.REQUESTS_SHEET,
            'registrations': cls.REGISTRATIONS_SHEET,
            'schedule': cls.SCHEDULE_SHEET,
        }

    @classmethod
    def check_credentials(cls, username: str, password: str) -> bool:
        """Compare supplied credentials against the configured admin account."""
        if not cls.ADMIN_USERNAME or not cls.ADMIN_PASSWORD:
            return False
        user_ok = hmac.compare_digest((username or '').encode(), cls.ADMIN_USERNAME.encode())
        pass_ok = hmac.compare_digest((password or '').encode(), cls.ADMIN_PASSWORD.encode())
        return user_ok and pass_ok

    @classmethod
    def validate(cls):
        """Validate configuration, warning about anything that disables features."""
        if not cls.sheet_service_configured():
            logger.warning("SHEET_SCRIPT_URL is not set; record refresh is disabled")

        if not cls.ADMIN_USERNAME or not cls.ADMIN_PASSWORD:
            logger.warning("ADMIN_USERNAME/ADMIN_PASSWORD not set; admin endpoints will reject all requests")

        if cls.ANALYTICS_REFRESH_MINUTES < 1:
            raise ValueError("ANALYTICS_REFRESH_MINUTES must be at least 1")

        return True


# Validate configuration on import
Config.validate()
