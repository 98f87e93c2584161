"""
Ledger error taxonomy.

Business conditions (missing account, insufficient funds) are ordinary
exceptions raised to the caller; the HTTP layer maps them to status codes.
"""

from decimal import Decimal
from uuid import UUID


class LedgerError(Exception):
    """Base class for all ledger errors"""


class AccountNotFoundError(LedgerError):
    """Raised when an operation requires an account that does not exist"""

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class NotEnoughFundsError(LedgerError):
    """Raised when a withdrawal exceeds the current balance"""

    def __init__(self, account_id: UUID, balance: Decimal, requested: Decimal):
        self.account_id = account_id
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Not enough funds in account {account_id}: "
            f"balance {balance}, requested {requested}"
        )


class StorageError(LedgerError):
    """Raised when the persistence backend fails"""
