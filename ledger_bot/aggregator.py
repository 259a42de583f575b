"""Report aggregates over ledger rows that have already been fetched.

Every function here is pure: rows and category definitions come in,
numbers or reply text go out. Fetching is the store's job. Money stays
Decimal throughout so totals are exact whatever the row order.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from ledger_bot.errors import CategoryNotFound
from ledger_bot.models import CategoryBalance

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')


def format_amount(value):
    """12.5 -> '12.5', 15 -> '15', 3.14159 -> '3.14'"""
    amount = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return str(amount).rstrip('0')


def round_half_up(value):
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _exact_sum(amounts):
    return sum(amounts, ZERO)


# --- CURRENT SPEND ---
def sum_by_user(rows):
    """Total amount per user, skipping rows with an empty user.

    Keys come back sorted by user name, so the mapping is the same for any
    ordering of the input rows.
    """
    df = pd.DataFrame(
        [{'User': row.user, 'Amount': row.amount} for row in rows],
        columns=['User', 'Amount'],
        dtype=object,
    )
    df = df[df['User'] != '']

    if df.empty:
        return {}

    totals = df.groupby('User', sort=True)['Amount'].agg(_exact_sum)
    return {user: amount for user, amount in totals.items()}


def format_user_totals(totals):
    return "\n".join(f"{user}: ${format_amount(total)}" for user, total in totals.items())


# --- CATEGORIES ---
def format_categories(categories):
    return "\n".join(
        f"ID: {category.id}, Name: {category.name}, Budget: {format_amount(category.budget)}"
        for category in categories
    )


# --- BUDGET BALANCE ---
def _find_balance(balances, category):
    try:
        category_id = int(category)
    except ValueError:
        raise CategoryNotFound(category)

    for balance in balances:
        if balance.id == category_id:
            return balance
    raise CategoryNotFound(category)


def balance_by_category(categories, rows):
    """Match each categorised expense to its budget, in one pass.

    Rows pointing at an unknown category are logged and left out; they
    never change any balance.
    """
    balances = [CategoryBalance.from_definition(category) for category in categories]

    for row in rows:
        if not row.category:
            continue

        try:
            balance = _find_balance(balances, row.category)
        except CategoryNotFound as e:
            logger.warning(f"{e}, skipping expense '{row.description}' by {row.user}")
            continue

        balance.add(row.amount)

    return balances


def format_balances(balances):
    lines = []
    for balance in balances:
        average = balance.average_price
        if average is None:
            lines.append(f"{balance.name}, Average price: no expenses")
        else:
            lines.append(f"{balance.name}, Average price: ${round_half_up(average)}")
    return "\n".join(lines)
