"""
Ledger Records

Account and Transaction records shared by the storage backends, the
transaction manager and the HTTP layer. Transactions are immutable once
created; accounts are replaced, never mutated in place by callers.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
from uuid import UUID

from .money import ZERO, format_amount


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "deposit"        # Money credited to the account
    WITHDRAWAL = "withdrawal"  # Money debited from the account


@dataclass
class Account:
    """Balance-bearing account identified by a UUID"""
    id: UUID
    balance: Decimal = ZERO

    def with_balance(self, balance: Decimal) -> 'Account':
        """Return a copy carrying a new balance"""
        return replace(self, balance=balance)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage and JSON responses"""
        return {
            "id": str(self.id),
            "balance": format_amount(self.balance),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        """Create instance from dictionary"""
        return cls(id=UUID(str(data["id"])), balance=Decimal(str(data["balance"])))


@dataclass(frozen=True)
class Transaction:
    """
    Signed monetary event against an account.

    Deposits carry a positive amount, withdrawals a negative one.
    """
    transaction_id: UUID
    amount: Decimal
    timestamp: datetime
    transaction_type: TransactionType

    @property
    def is_deposit(self) -> bool:
        return self.transaction_type == TransactionType.DEPOSIT

    @property
    def is_withdrawal(self) -> bool:
        return self.transaction_type == TransactionType.WITHDRAWAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage and JSON responses"""
        return {
            "transaction_id": str(self.transaction_id),
            "amount": format_amount(self.amount),
            "timestamp": self.timestamp.isoformat(timespec="microseconds"),
            "transaction_type": self.transaction_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from dictionary"""
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            transaction_id=UUID(str(data["transaction_id"])),
            amount=Decimal(str(data["amount"])),
            timestamp=timestamp,
            transaction_type=TransactionType(data["transaction_type"]),
        )
