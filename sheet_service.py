"""Client for the spreadsheet-backed record service.

The service is a Google Apps Script web app: reads go through GET with
`action=read&sheetName=...`, writes through POST with a JSON body. Every
response is wrapped as {"status": "success" | "error", "data": ..., "message": ...}.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from config import Config, PLACEHOLDER_URL_MARKER

logger = logging.getLogger(__name__)


class SheetServiceError(Exception):
    """Raised when the record service can't be reached or reports an error."""


class SheetService:
    """Reads and writes sheet rows through the Apps Script endpoint."""

    def __init__(self, script_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.script_url = script_url if script_url is not None else Config.SHEET_SCRIPT_URL
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _check_configured(self):
        if not self.script_url or PLACEHOLDER_URL_MARKER in self.script_url:
            raise SheetServiceError("CONFIGURATION ERROR: set SHEET_SCRIPT_URL to the deployed Apps Script web app URL")

    def _unwrap(self, response: requests.Response, context: str) -> Any:
        if not response.ok:
            raise SheetServiceError(f"{context}: network response was not ok (status {response.status_code})")

        try:
            result = json.loads(response.text)
        except ValueError as e:
            raise SheetServiceError(f"{context}: response was not JSON ({e})") from e

        if not isinstance(result, dict):
            raise SheetServiceError(f"{context}: unexpected response shape")

        if result.get('status') == 'error':
            raise SheetServiceError(f"{context}: Google Apps Script Error: {result.get('message')}")

        return result.get('data')

    def make_request(self, body: Dict[str, Any]) -> Any:
        """POST an action to the script and return the `data` of its response."""
        self._check_configured()
        context = f"POST {body.get('action')}"

        try:
            response = self.session.post(
                self.script_url,
                data=json.dumps(body),
                # Apps Script rejects preflighted JSON content types
                headers={'Content-Type': 'text/plain;charset=utf-8'},
                timeout=self.timeout,
                allow_redirects=True
            )
        except requests.RequestException as e:
            logger.error(f"Sheet service error ({context}): {e}")
            raise SheetServiceError(f"{context}: {e}") from e

        return self._unwrap(response, context)

    def fetch_data(self, sheet_name: str) -> List[Dict[str, Any]]:
        """Read every row of a sheet; each row carries its `rowIndex`."""
        self._check_configured()
        context = f"fetchData for {sheet_name}"

        try:
            response = self.session.get(
                self.script_url,
                params={'action': 'read', 'sheetName': sheet_name},
                timeout=self.timeout,
                allow_redirects=True
            )
        except requests.RequestException as e:
            logger.error(f"Sheet service error ({context}): {e}")
            raise SheetServiceError(f"{context}: {e}") from e

        data = self._unwrap(response, context)
        if data is None:
            return []
        if not isinstance(data, list):
            raise SheetServiceError(f"{context}: expected a list of rows")

        logger.info(f"Fetched {len(data)} rows from '{sheet_name}'")
        return data

    def create_row(self, sheet_name: str, row: Dict[str, Any]) -> Any:
        return self.make_request({'action': 'create', 'sheetName': sheet_name, 'payload': row})

    def update_row(self, sheet_name: str, row: Dict[str, Any]) -> Any:
        if not row.get('rowIndex'):
            raise SheetServiceError("update_row requires a rowIndex")
        return self.make_request({'action': 'update', 'sheetName': sheet_name, 'payload': row})

    def delete_row(self, sheet_name: str, row_index: int) -> Any:
        return self.make_request({'action': 'delete', 'sheetName': sheet_name, 'payload': {'rowIndex': row_index}})


# Global service instance
sheet_service = SheetService()
