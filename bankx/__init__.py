"""
BankX Ledger Core

Balance-mutation engine for a retail bank: per-customer Savings and Current
accounts, atomic money movements with exact Decimal arithmetic, and an
append-only transaction and notification history.
"""

__version__ = "1.0.0"
