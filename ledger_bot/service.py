import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from ledger_bot import aggregator
from ledger_bot.commands import parse
from ledger_bot.errors import USER_MESSAGES, StoreError
from ledger_bot.models import (
    LEDGER_HEADER,
    Invalid,
    QueryBudgetBalance,
    QueryCategories,
    QueryCurrentSpend,
    RecordExpense,
)
from ledger_bot.store import period_key

logger = logging.getLogger(__name__)

MAX_WORKERS = 8
NO_EXPENSES_TEXT = "No expenses recorded yet."
NO_CATEGORIES_TEXT = "No categories defined."


def is_text_message(event):
    return event.get('type') == 'message' and event.get('message', {}).get('type') == 'text'


class LedgerService:
    """Handles one inbound chat message from parse to reply"""

    def __init__(self, config, store, replier, clock=datetime.now):
        self.config = config
        self.store = store
        self.replier = replier
        self.clock = clock

    # --- BATCH ---
    def handle_events(self, events):
        """Process a webhook delivery concurrently; returns the number of failed events.

        A failure in one event is logged and never stops its siblings.
        """
        if not events:
            return 0

        failures = 0
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(events))) as pool:
            futures = [pool.submit(self.handle_event, event) for event in events]
            for future in futures:
                try:
                    future.result()
                except StoreError as e:
                    failures += 1
                    logger.error(f"Store failure while handling event (retryable={e.retryable}): {e}")
                except Exception as e:
                    failures += 1
                    logger.error(f"Unexpected error while handling event: {e}", exc_info=True)
        return failures

    # --- SINGLE EVENT ---
    def handle_event(self, event):
        """Handle one webhook event; StoreError propagates to the caller"""
        if not is_text_message(event):
            logger.debug(f"Ignoring event of type {event.get('type')}")
            return None

        text = event['message']['text']
        reply_token = event.get('replyToken')
        command = parse(text)
        logger.info(f"Parsed {text!r} as {command}")

        reply = self.execute(command)
        self.replier.reply(reply_token, reply)
        return reply

    def execute(self, command):
        """Run a command against the store and return the reply text"""
        if isinstance(command, Invalid):
            return USER_MESSAGES[command.reason]

        document = self.store.resolve_document()

        if isinstance(command, QueryCategories):
            categories = self.store.fetch_categories(document)
            return aggregator.format_categories(categories) or NO_CATEGORIES_TEXT

        now = self.clock()
        sheet = self.store.get_or_create_sheet(document, period_key(now), LEDGER_HEADER)

        if isinstance(command, RecordExpense):
            self.store.append_row(sheet, command.to_row(now))
            logger.info(f"Expense recorded: {command.amount} by {command.user}")
            return (
                f"Saved {command.description} "
                f"${aggregator.format_amount(command.amount)} for {command.user}"
            )

        if isinstance(command, QueryCurrentSpend):
            rows = self.store.fetch_ledger_rows(sheet)
            totals = aggregator.sum_by_user(rows)
            return aggregator.format_user_totals(totals) or NO_EXPENSES_TEXT

        if isinstance(command, QueryBudgetBalance):
            categories = self.store.fetch_categories(document)
            rows = self.store.fetch_ledger_rows(sheet)
            balances = aggregator.balance_by_category(categories, rows)
            return aggregator.format_balances(balances) or NO_CATEGORIES_TEXT

        raise TypeError(f"Unknown command: {command!r}")
