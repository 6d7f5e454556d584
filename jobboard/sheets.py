"""Google Sheets access: reading the board and writing changes back."""

import logging
from pathlib import Path
from typing import Any, Optional

import requests
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .config import Config, get_config
from .ingest import IngestResult, load_board
from .models import Column
from .sync import SyncError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]


def get_credentials() -> Credentials:
    """Get or refresh Sheets API credentials."""
    config_dir = Path(__file__).parent.parent / "config"
    token_path = config_dir / "sheets_token.json"
    credentials_path = config_dir / "credentials.json"

    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing expired Sheets credentials")
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    f"Credentials file not found: {credentials_path}. "
                    "Download credentials.json from Google Cloud Console, or set api_key in config.yaml."
                )
            logger.info("Starting OAuth flow for Sheets")
            flow = InstalledAppFlow.from_client_secrets_file(
                str(credentials_path), SCOPES
            )
            creds = flow.run_local_server(port=0)

        with open(token_path, "w") as token:
            token.write(creds.to_json())
            logger.info(f"Saved Sheets credentials to {token_path}")

    return creds


def build_service(config: Config):
    """Sheets v4 service, authenticated by API key if configured, OAuth otherwise."""
    if config.api_key:
        return build("sheets", "v4", developerKey=config.api_key, cache_discovery=False)
    return build("sheets", "v4", credentials=get_credentials(), cache_discovery=False)


def fetch_values(config: Optional[Config] = None, service=None) -> list[list[Any]]:
    """Read the configured range. Row 0 is the header row."""
    config = config or get_config()
    service = service or build_service(config)

    result = (
        service.spreadsheets()
        .values()
        .get(spreadsheetId=config.spreadsheet_id, range=config.range)
        .execute()
    )
    values = result.get("values", [])
    logger.info(f"Fetched {len(values)} rows from {config.range}")
    return values


def load_remote_board(config: Optional[Config] = None, service=None) -> IngestResult:
    """Fetch and ingest the sheet. Never raises; failures come back as LoadFailed."""
    return load_board(lambda: fetch_values(config, service))


class AppsScriptAdapter:
    """Writes changes through the spreadsheet's Apps Script web app.

    The script takes plain query parameters; every request carries the
    configured token and origin. Repeating a status update just rewrites
    the same cell.
    """

    def __init__(
        self,
        webapp_url: str,
        token: str = "",
        origin: str = "http://localhost",
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.webapp_url = webapp_url
        self.token = token
        self.origin = origin
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> "AppsScriptAdapter":
        if not config.webapp_url:
            raise ValueError("webapp_url is not configured")
        return cls(
            config.webapp_url,
            token=config.webapp_token,
            origin=config.origin,
            timeout=config.request_timeout,
        )

    def _call(self, params: dict[str, str]) -> requests.Response:
        params = {**params, "token": self.token, "origin": self.origin}
        try:
            response = self.session.get(self.webapp_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise SyncError(f"Web app request failed: {e}") from e
        if not response.ok:
            raise SyncError(f"Web app returned {response.status_code}: {response.text[:200]}")
        return response

    def set_status(self, row_index: int, status: Column) -> None:
        self._call({"row": str(row_index), "status": status.value})
        logger.info(f"Updated status of row {row_index} to {status.value}")

    def save_fields(self, row_index: int, fields: dict[str, str]) -> None:
        self._call({"row": str(row_index), **fields})
        logger.info(f"Saved details of row {row_index}")

    def upsert_record(self, fields: dict[str, str], row_index: Optional[int] = None) -> Optional[int]:
        params = {"action": "upsert", **fields}
        if row_index is not None:
            params["row"] = str(row_index)
        response = self._call(params)

        if row_index is not None:
            logger.info(f"Updated row {row_index}")
            return row_index
        try:
            assigned = response.json().get("row")
        except (ValueError, AttributeError):
            assigned = None
        if assigned is None:
            logger.warning(f"Web app did not report a row for {fields.get('ID', '')}")
            return None
        logger.info(f"Created row {assigned} for {fields.get('ID', '')}")
        return int(assigned)

    def delete_record(self, record_id: str, row_index: Optional[int] = None) -> None:
        params = {"action": "delete", "id": record_id}
        if row_index is not None:
            params["row"] = str(row_index)
        self._call(params)
        logger.info(f"Deleted {record_id} from sheet")
