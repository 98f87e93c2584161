"""
Transaction Processing Module

Handles deposits and withdrawals against ledger accounts. The manager enforces
the business rules (auto-provisioning on deposit, 2-decimal truncation,
non-negative balances) and delegates persistence to a LedgerStore.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterator, List, Tuple
from uuid import UUID
import threading
import uuid

from .errors import AccountNotFoundError, NotEnoughFundsError
from .logging_config import get_logger, log_action
from .models import Account, Transaction, TransactionType
from .money import AmountLike, ZERO, format_amount, normalize_amount, to_decimal
from .storage import LedgerStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccountLocks:
    """
    Registry of per-account mutexes.

    A withdrawal reads the balance, checks it and appends a transaction in
    separate store calls; holding the account's lock across the sequence
    keeps two withdrawals from passing the funds check on the same balance.
    """

    def __init__(self):
        self._locks: Dict[UUID, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, account_id: UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, account_id: UUID) -> Iterator[None]:
        """Hold the lock of one account for the duration of the block"""
        lock = self._lock_for(account_id)
        with lock:
            yield


class TransactionManager:
    """
    Applies deposit and withdrawal rules on top of a ledger store
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.locks = AccountLocks()
        self.logger = get_logger("ledger.transactions")

    def get_account(self, account_id: UUID) -> Account:
        """
        Get an account and its balance, creating a zero-balance account
        on first use.
        """
        with self.locks.hold(account_id):
            return self._get_or_create_account(account_id)

    def add_deposit(self, account_id: UUID, amount: AmountLike) -> Transaction:
        """
        Add a deposit to an account. The account is created if it doesn't exist.

        Args:
            account_id: Account to credit
            amount: Strictly positive amount, truncated to 2 decimal places

        Returns:
            The recorded deposit transaction
        """
        normalized = self._normalize(amount)

        with self.locks.hold(account_id):
            account = self._get_or_create_account(account_id)
            deposit = self._new_transaction(account.id, normalized, TransactionType.DEPOSIT)
            self.store.save_transaction(account.id, deposit)

        log_action(
            self.logger, "info", "Deposit recorded",
            action="deposit", resource=f"account:{account_id}",
            extra={
                "transaction_id": str(deposit.transaction_id),
                "amount": format_amount(deposit.amount),
            }
        )
        return deposit

    def add_withdrawal(self, account_id: UUID, amount: AmountLike) -> Transaction:
        """
        Add a withdrawal to an existing account.

        The withdrawal only takes place if the balance stays non-negative
        afterwards; otherwise nothing is recorded.

        Raises:
            AccountNotFoundError: The account has never been created
            NotEnoughFundsError: The balance is lower than the amount
        """
        normalized = self._normalize(amount)

        with self.locks.hold(account_id):
            account = self.store.get_account(account_id)
            if account.balance < normalized:
                raise NotEnoughFundsError(account_id, account.balance, normalized)

            withdrawal = self._new_transaction(
                account.id, ZERO - normalized, TransactionType.WITHDRAWAL
            )
            self.store.save_transaction(account.id, withdrawal)

        log_action(
            self.logger, "info", "Withdrawal recorded",
            action="withdrawal", resource=f"account:{account_id}",
            extra={
                "transaction_id": str(withdrawal.transaction_id),
                "amount": format_amount(withdrawal.amount),
            }
        )
        return withdrawal

    def get_transactions(
        self, account_id: UUID, page: int, limit: int
    ) -> Tuple[List[Transaction], int]:
        """
        Get one page of an existing account's transactions, newest first.

        Returns:
            The page of transactions and the next page number (0 when done)
        """
        self.store.get_account(account_id)
        return self.store.get_transactions(account_id, page, limit)

    def _get_or_create_account(self, account_id: UUID) -> Account:
        # Caller holds the account lock
        try:
            return self.store.get_account(account_id)
        except AccountNotFoundError:
            account = Account(id=account_id, balance=ZERO)
            self.store.save_account(account)
            log_action(
                self.logger, "info", "Account created",
                action="create_account", resource=f"account:{account_id}"
            )
            return account

    @staticmethod
    def _normalize(amount: AmountLike) -> Decimal:
        decimal_amount = to_decimal(amount)
        if decimal_amount <= ZERO:
            raise ValueError(f"Amount must be positive, got {amount}")
        return normalize_amount(decimal_amount)

    def _new_transaction(
        self, account_id: UUID, amount: Decimal, transaction_type: TransactionType
    ) -> Transaction:
        # Caller holds the account lock; timestamps never go backwards per account
        timestamp = utc_now()
        latest, _ = self.store.get_transactions(account_id, 0, 1)
        if latest and latest[0].timestamp > timestamp:
            timestamp = latest[0].timestamp

        return Transaction(
            transaction_id=uuid.uuid4(),
            amount=amount,
            timestamp=timestamp,
            transaction_type=transaction_type,
        )
