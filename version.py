"""Version information for the station dashboard."""

import os

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)
__description__ = "Request triage and show analytics backend for a radio station dashboard"

RELEASE_DATE = "2025-11-20"

# Injected at build/deploy time
COMMIT = os.getenv('GIT_COMMIT', 'unknown')
BUILD_TIME = os.getenv('BUILD_TIME', 'unknown')


def get_version_string():
    """Return formatted version string."""
    return f"Station Dashboard v{__version__} ({RELEASE_DATE}, commit {COMMIT})"
