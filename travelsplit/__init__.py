"""A chat bot that tracks shared travel expenses, transfers and balances, stored in SQLite."""

__version__ = "0.2.2"