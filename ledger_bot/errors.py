class LedgerBotError(Exception):
    """Base class for all bot errors"""


class InvalidMessage(LedgerBotError):
    """A chat message that cannot be turned into a ledger command"""

    reason = None
    user_message = "Invalid message"


class FormatError(InvalidMessage):
    reason = "format"
    user_message = "Invalid message format"


class AmountError(InvalidMessage):
    reason = "amount"
    user_message = "Invalid amount"


USER_MESSAGES = {
    FormatError.reason: FormatError.user_message,
    AmountError.reason: AmountError.user_message,
}


class CategoryNotFound(LedgerBotError):
    """An expense row references a category id with no definition"""

    def __init__(self, category):
        super().__init__(f"Category not found: {category!r}")
        self.category = category


class StoreError(LedgerBotError):
    """Spreadsheet fetch, append or create failed"""

    def __init__(self, message, retryable=False):
        super().__init__(message)
        self.retryable = retryable
