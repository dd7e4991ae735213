"""
Bank Ledger

An in-memory ledger for a single banking client: deposits, withdrawals,
date-effective interest rules and chronological statements. All monetary
values use Decimal.
"""

__version__ = "1.0.0"
