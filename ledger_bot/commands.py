import re
from decimal import Decimal

from ledger_bot.errors import AmountError, FormatError, InvalidMessage
from ledger_bot.models import (
    Invalid,
    QueryBudgetBalance,
    QueryCategories,
    QueryCurrentSpend,
    RecordExpense,
)

# Whole-message keywords; checked before any record parsing
QUERY_KEYWORDS = {
    'spend': QueryCurrentSpend,
    'categories': QueryCategories,
    'budget': QueryBudgetBalance,
}

# "<user> <description> <amount> [category id]"
MIN_TOKENS = 3
MAX_TOKENS = 4

# Plain ASCII decimal notation: no digit separators, exponents, nan/inf or
# full-width digits
AMOUNT_PATTERN = re.compile(r'[+-]?([0-9]{1,12}(\.[0-9]*)?|\.[0-9]+)')


def parse_amount(token):
    """Parse an amount token; negatives and decimals are fine, nan/inf are not"""
    if not AMOUNT_PATTERN.fullmatch(token):
        raise AmountError(token)
    return Decimal(token)


def _parse_record(message):
    tokens = message.split(' ')

    if not MIN_TOKENS <= len(tokens) <= MAX_TOKENS:
        raise FormatError(message)

    user, description, amount = tokens[:3]
    category = tokens[3] if len(tokens) == MAX_TOKENS and tokens[3] else None

    return RecordExpense(
        user=user,
        description=description,
        amount=parse_amount(amount),
        category=category,
    )


def parse(message):
    """Turn one raw chat message into a command. Never raises."""
    query = QUERY_KEYWORDS.get(message)
    if query is not None:
        return query()

    try:
        return _parse_record(message)
    except InvalidMessage as e:
        return Invalid(reason=e.reason)
