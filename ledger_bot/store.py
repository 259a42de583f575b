"""Google Sheets ledger: one worksheet per month plus a categories worksheet."""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime

import gspread
import requests
from oauth2client.service_account import ServiceAccountCredentials

from ledger_bot.errors import StoreError
from ledger_bot.models import CATEGORY_HEADER, LEDGER_HEADER, CategoryDefinition, LedgerRow

logger = logging.getLogger(__name__)

SCOPES = [
    'https://spreadsheets.google.com/feeds',
    'https://www.googleapis.com/auth/drive'
]

NEW_SHEET_ROWS = 1000


def period_key(now=None):
    """Worksheet title for the month containing `now`, e.g. '2026-10'"""
    return (now or datetime.now()).strftime("%Y-%m")


@contextmanager
def _store_call(action):
    """Re-raise gspread and transport failures as StoreError"""
    try:
        yield
    except StoreError:
        raise
    except requests.Timeout as e:
        logger.error(f"Timed out while trying to {action}: {e}")
        raise StoreError(f"Timed out while trying to {action}", retryable=True) from e
    except (gspread.exceptions.GSpreadException, requests.RequestException) as e:
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise StoreError(f"Failed to {action}: {e}") from e


def _is_blank(values):
    return not any(cell.strip() for cell in values)


class SheetStore:
    """Reads and appends ledger rows in one Google Sheets document"""

    def __init__(self, config, client=None):
        self.config = config
        self._client = client
        self._client_guard = threading.Lock()
        self._locks = {}
        self._locks_guard = threading.Lock()

    @property
    def client(self):
        """Lazy initialization of the Google Sheets client"""
        with self._client_guard:
            if self._client is None:
                with _store_call("initialize Google Sheets client"):
                    creds = ServiceAccountCredentials.from_json_keyfile_dict(
                        self.config.google_credentials, SCOPES
                    )
                    client = gspread.authorize(creds)
                    client.set_timeout(self.config.store_timeout)
                self._client = client
                logger.info("Google Sheets client initialized successfully")
        return self._client

    # --- DOCUMENT & SHEETS ---
    def resolve_document(self, doc_id=None):
        doc_id = doc_id or self.config.document_id
        with _store_call(f"open document {doc_id}"):
            return self.client.open_by_key(doc_id)

    def find_sheet(self, document, name):
        with _store_call(f"look up sheet '{name}'"):
            try:
                return document.worksheet(name)
            except gspread.exceptions.WorksheetNotFound:
                return None

    def create_sheet(self, document, name, header):
        with _store_call(f"create sheet '{name}'"):
            try:
                sheet = document.add_worksheet(title=name, rows=NEW_SHEET_ROWS, cols=len(header))
            except gspread.exceptions.APIError as e:
                # Another process got there first
                existing = self.find_sheet(document, name)
                if existing is None:
                    raise
                logger.info(f"Sheet '{name}' already exists, reusing it ({e})")
                return existing

            try:
                sheet.append_row(header)
            except (gspread.exceptions.GSpreadException, requests.RequestException):
                # A sheet without its header must not be found and reused later
                self._discard_sheet(document, sheet)
                raise

        logger.info(f"Created sheet '{name}'")
        return sheet

    def _discard_sheet(self, document, sheet):
        try:
            document.del_worksheet(sheet)
            logger.warning(f"Removed sheet '{sheet.title}' after its header could not be written")
        except (gspread.exceptions.GSpreadException, requests.RequestException) as e:
            logger.error(f"Sheet '{sheet.title}' was left without a header: {e}", exc_info=True)

    def _lock_for(self, name):
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def get_or_create_sheet(self, document, name, header):
        """Fetch-or-create, single-flight per sheet name within this process"""
        sheet = self.find_sheet(document, name)
        if sheet is not None:
            return sheet

        with self._lock_for(name):
            sheet = self.find_sheet(document, name)
            if sheet is not None:
                return sheet
            return self.create_sheet(document, name, header)

    # --- ROWS ---
    def append_row(self, sheet, fields):
        """Append cells as typed (RAW); chat text is never parsed as a formula"""
        with _store_call(f"append row to '{sheet.title}'"):
            sheet.append_row(fields)

    def fetch_rows(self, sheet, header):
        """Raw cell values below the header row, blank rows dropped.

        Raises StoreError when the first row is not `header`.
        """
        with _store_call(f"fetch rows from '{sheet.title}'"):
            values = sheet.get_all_values()

        found = [cell.strip() for cell in values[0][:len(header)]] if values else []
        if found != header:
            raise StoreError(f"Sheet '{sheet.title}' starts with {found}, expected header {header}")

        return [row for row in values[1:] if not _is_blank(row)]

    def fetch_ledger_rows(self, sheet):
        return [LedgerRow.from_values(values) for values in self.fetch_rows(sheet, LEDGER_HEADER)]

    def fetch_categories(self, document):
        name = self.config.category_sheet
        sheet = self.find_sheet(document, name)
        if sheet is None:
            raise StoreError(f"Category sheet '{name}' not found")
        return [
            CategoryDefinition.from_values(values)
            for values in self.fetch_rows(sheet, CATEGORY_HEADER)
        ]
