from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from ledger_bot.errors import StoreError

LEDGER_HEADER = ['User', 'Description', 'Amount', 'Category', 'CreatedAt']
CATEGORY_HEADER = ['ID', 'Name', 'Budget']
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


# --- COMMANDS ---
@dataclass(frozen=True)
class RecordExpense:
    user: str
    description: str
    amount: Decimal
    category: Optional[str] = None

    def to_row(self, created_at):
        """Ledger sheet cells, in LEDGER_HEADER order"""
        return [
            self.user,
            self.description,
            float(self.amount),  # sheet cells hold numbers, not Decimal
            self.category or '',
            created_at.strftime(CREATED_AT_FORMAT),
        ]


@dataclass(frozen=True)
class QueryCurrentSpend:
    pass


@dataclass(frozen=True)
class QueryCategories:
    pass


@dataclass(frozen=True)
class QueryBudgetBalance:
    pass


@dataclass(frozen=True)
class Invalid:
    reason: str  # "format" or "amount"


# --- LEDGER RECORDS ---
def _cell(values, index):
    return values[index] if len(values) > index else ''


def to_decimal(text):
    """Finite Decimal from a sheet cell, or None"""
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


@dataclass(frozen=True)
class LedgerRow:
    user: str
    description: str
    amount: Decimal
    category: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_values(cls, values):
        """Build a row from raw sheet cells; raises StoreError on shape mismatch"""
        if len(values) < 3:
            raise StoreError(f"Ledger row has {len(values)} cells, expected at least 3: {values}")

        amount = to_decimal(values[2])
        if amount is None:
            raise StoreError(f"Ledger row has a non-numeric amount: {values}")

        created_at = None
        raw_created = _cell(values, 4)
        if raw_created:
            try:
                created_at = datetime.strptime(raw_created, CREATED_AT_FORMAT)
            except ValueError:
                created_at = None

        return cls(
            user=values[0],
            description=values[1],
            amount=amount,
            category=_cell(values, 3) or None,
            created_at=created_at,
        )


@dataclass(frozen=True)
class CategoryDefinition:
    id: int
    name: str
    budget: Decimal

    @classmethod
    def from_values(cls, values):
        if len(values) < 3:
            raise StoreError(f"Category row has {len(values)} cells, expected 3: {values}")

        budget = to_decimal(values[2])
        try:
            category_id = int(values[0])
        except ValueError:
            category_id = None
        if category_id is None or budget is None:
            raise StoreError(f"Malformed category row: {values}")

        return cls(id=category_id, name=values[1], budget=budget)


@dataclass
class CategoryBalance:
    """Running spend against one category's budget"""
    id: int
    name: str
    budget: Decimal
    expense: Decimal = Decimal('0')
    count: int = 0

    @classmethod
    def from_definition(cls, definition):
        return cls(id=definition.id, name=definition.name, budget=definition.budget)

    def add(self, amount):
        self.expense += amount
        self.budget -= amount
        self.count += 1

    @property
    def average_price(self):
        if self.count == 0:
            return None
        return self.expense / self.count
