"""
Google Sheets fetcher for sheetdiff.

Reads a single A1 range through the Sheets v4 API:
  spreadsheets.values.get(spreadsheetId, range)

Notes:
- The client library is synchronous; every fetch runs in a worker thread
  (asyncio.to_thread) so the event loop keeps ticking.
- Each request gets its own authorized httplib2.Http. httplib2 connections are
  not thread-safe, and a request that timed out on our side may still be
  running in its thread when the next poll starts.
- That Http carries a socket timeout, so an abandoned request always ends
  and gives its worker thread back to the pool.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import Http, HttpLib2Error
from oauth2client import client, file, tools
from oauth2client.service_account import ServiceAccountCredentials

from sheetdiff.models import MalformedRow, Snapshot, SourceError
from sheetdiff.processing import freeze_values

# If modifying these scopes, delete the file token.json.
SCOPES = ['https://www.googleapis.com/auth/spreadsheets.readonly']

# socket timeout = this many times the poll's fetch timeout
SOCKET_TIMEOUT_FACTOR = 3
DEFAULT_SOCKET_TIMEOUT_S = 15.0


def authenticate(client_secret_file: str, token_file: str, service_account_file: Optional[str] = None):
    """
    Service account key if one is configured, otherwise the installed-app
    flow. The installed-app flow opens a browser on first run and caches the
    token in token_file for the next ones.
    """
    if service_account_file:
        return ServiceAccountCredentials.from_json_keyfile_name(service_account_file, SCOPES)

    store = file.Storage(token_file)
    creds = store.get()
    if not creds or creds.invalid:
        flow = client.flow_from_clientsecrets(client_secret_file, SCOPES)
        creds = tools.run_flow(flow, store, tools.argparser.parse_args([]))
    return creds


def authorized_http_factory(credentials, socket_timeout_s: float) -> Callable[[], Any]:
    def authorized_http():
        return credentials.authorize(Http(timeout=socket_timeout_s))
    return authorized_http


class SheetsSource:
    def __init__(self, service, spreadsheet_id: str, range_: str, http_factory: Callable[[], Any]):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.range = range_
        self.http_factory = http_factory

    @classmethod
    def from_credentials(cls, credentials, spreadsheet_id: str, range_: str,
                         socket_timeout_s: float = DEFAULT_SOCKET_TIMEOUT_S) -> "SheetsSource":
        authorized_http = authorized_http_factory(credentials, socket_timeout_s)
        service = build('sheets', 'v4', http=authorized_http(), cache_discovery=False)
        return cls(service, spreadsheet_id, range_, authorized_http)

    def _get_values(self) -> Any:
        request = self.service.spreadsheets().values().get(
            spreadsheetId=self.spreadsheet_id,
            range=self.range,
        )
        return request.execute(http=self.http_factory())

    async def fetch(self) -> Snapshot:
        try:
            response = await asyncio.to_thread(self._get_values)
        except HttpError as e:
            raise SourceError(f"Google API error: {e}") from e
        except (client.Error, HttpLib2Error, OSError) as e:
            raise SourceError(f"Google API transport error: {e!r}") from e

        if not isinstance(response, dict):
            raise MalformedRow(f"Unexpected response type {type(response).__name__}")

        # The API leaves `values` out entirely when the range is empty
        values = response.get("values")
        if values is None:
            raise MalformedRow("No data found")

        return freeze_values(values)
