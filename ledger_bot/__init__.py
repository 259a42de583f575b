"""Chat bot that keeps a spreadsheet ledger of expenses reported by text message."""

__version__ = "0.1.0"
