"""
Ledger Service

A minimal ledger that tracks per-account balances and records deposit and
withdrawal transactions. All monetary values use Decimal with 2-digit precision.
"""

__version__ = "1.0.0"
