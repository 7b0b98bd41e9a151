"""PFC Ledger — daily proteins/fats/carbs totals over HTTP."""

__version__ = "0.1.0"
