import gspread
import pytest

from ledger_bot.config import Config


@pytest.fixture
def config():
    return Config(
        channel_secret="secret",
        channel_access_token="token",
        document_id="doc-1",
        google_credentials={"type": "service_account"},
    )


@pytest.fixture
def debug_config(config):
    return Config(
        channel_secret=config.channel_secret,
        channel_access_token=config.channel_access_token,
        document_id=config.document_id,
        google_credentials=config.google_credentials,
        debug=True,
    )


class FakeWorksheet:
    """In-memory stand-in for gspread.Worksheet"""

    def __init__(self, title, values=None):
        self.title = title
        self.values = [list(row) for row in (values or [])]
        self.appended = []

    def append_row(self, values, value_input_option="RAW"):
        self.values.append([str(v) for v in values])
        self.appended.append((list(values), value_input_option))

    def get_all_values(self):
        return [list(row) for row in self.values]


class FakeDocument:
    """In-memory stand-in for gspread.Spreadsheet"""

    def __init__(self, sheets=None):
        self.sheets = {sheet.title: sheet for sheet in (sheets or [])}
        self.created = []
        self.deleted = []

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.exceptions.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        sheet = FakeWorksheet(title)
        self.sheets[title] = sheet
        self.created.append(title)
        return sheet

    def del_worksheet(self, sheet):
        del self.sheets[sheet.title]
        self.deleted.append(sheet.title)


class FakeClient:
    def __init__(self, documents):
        self.documents = documents

    def open_by_key(self, key):
        if key not in self.documents:
            raise gspread.exceptions.SpreadsheetNotFound(key)
        return self.documents[key]


class RecordingReplier:
    def __init__(self):
        self.replies = []

    def reply(self, reply_token, text):
        self.replies.append((reply_token, text))


@pytest.fixture
def replier():
    return RecordingReplier()


def text_event(text, reply_token="reply-token"):
    return {
        "type": "message",
        "replyToken": reply_token,
        "message": {"type": "text", "text": text},
    }
