"""
Storage Backend Module

Provides the abstract ledger store interface and implementations for
in-memory (reference/testing) and SQLite (persistence). All monetary values
are stored as Decimal strings.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union
from uuid import UUID
import sqlite3
import threading

from .errors import AccountNotFoundError, StorageError
from .models import Account, Transaction, TransactionType
from .money import add_amounts


def paginate(
    transactions: List[Transaction], page: int, limit: int
) -> Tuple[List[Transaction], int]:
    """
    Select one page out of an already sorted transaction list.

    The window is [page*limit, page*limit+limit) clipped to the list bounds.
    The returned next page is page+1 while items remain past the window and
    0 once the end of the list is reached.
    """
    validate_page(page, limit)

    total = len(transactions)
    start = min(page * limit, total)
    end = min(start + limit, total)
    next_page = page + 1 if end < total else 0
    return transactions[start:end], next_page


def validate_page(page: int, limit: int) -> None:
    """Reject pagination input that callers should have clamped"""
    if limit <= 0:
        raise ValueError(f"Page limit must be positive, got {limit}")
    if page < 0:
        raise ValueError(f"Page must not be negative, got {page}")


class LedgerStore(ABC):
    """Abstract interface for ledger storage backends"""

    @abstractmethod
    def get_account(self, account_id: UUID) -> Account:
        """Load an account, raising AccountNotFoundError if absent"""
        pass

    @abstractmethod
    def save_account(self, account: Account) -> None:
        """Insert or overwrite an account record"""
        pass

    @abstractmethod
    def save_transaction(self, account_id: UUID, transaction: Transaction) -> None:
        """Append a transaction and apply its amount to the balance atomically"""
        pass

    @abstractmethod
    def get_transactions(
        self, account_id: UUID, page: int, limit: int
    ) -> Tuple[List[Transaction], int]:
        """Return one page of transactions, newest first, and the next page"""
        pass

    def close(self) -> None:
        """Close storage connection (default no-op)"""
        pass


class InMemoryLedgerStore(LedgerStore):
    """In-memory ledger store"""

    def __init__(self):
        self._accounts: Dict[UUID, Account] = {}
        self._transactions: Dict[UUID, List[Transaction]] = {}
        self._lock = threading.RLock()

    def get_account(self, account_id: UUID) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            # Copy to prevent external mutation
            return account.with_balance(account.balance)

    def save_account(self, account: Account) -> None:
        with self._lock:
            self._accounts[account.id] = account.with_balance(account.balance)

    def save_transaction(self, account_id: UUID, transaction: Transaction) -> None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)

            balance = add_amounts(account.balance, transaction.amount)
            self._transactions.setdefault(account_id, []).append(transaction)
            self._accounts[account_id] = account.with_balance(balance)

    def get_transactions(
        self, account_id: UUID, page: int, limit: int
    ) -> Tuple[List[Transaction], int]:
        with self._lock:
            history = list(self._transactions.get(account_id, []))

        # Newest first; equal timestamps keep the most recent insertion first
        ordered = sorted(reversed(history), key=lambda t: t.timestamp, reverse=True)
        return paginate(ordered, page, limit)


class SQLiteLedgerStore(LedgerStore):
    """SQLite ledger store for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        try:
            self._connection = sqlite3.connect(
                self.db_path, check_same_thread=False, isolation_level=None
            )
            self._connection.row_factory = sqlite3.Row

            # Enable WAL mode for better concurrent access
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

            self._create_schema()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open ledger database {self.db_path}: {e}") from e

    def _create_schema(self) -> None:
        """Ensure tables exist with proper schema"""
        self._connection.execute("""
            CREATE TABLE IF NOT EXISTS accounts (
                id TEXT PRIMARY KEY,
                balance TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._connection.execute("""
            CREATE TABLE IF NOT EXISTS ledger_transactions (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                account_id TEXT NOT NULL REFERENCES accounts(id),
                amount TEXT NOT NULL,
                transaction_type TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        # Index for per-account history queries
        self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_ledger_transactions_account
            ON ledger_transactions(account_id, created_at)
        """)

    @contextmanager
    def _atomic(self) -> Iterator[sqlite3.Connection]:
        """Run statements in a single SQLite transaction"""
        with self._lock:
            try:
                self._connection.execute("BEGIN IMMEDIATE")
                try:
                    yield self._connection
                except Exception:
                    self._connection.execute("ROLLBACK")
                    raise
                self._connection.execute("COMMIT")
            except sqlite3.Error as e:
                raise StorageError(f"Ledger database error: {e}") from e

    def _load_account(self, conn: sqlite3.Connection, account_id: UUID) -> Account:
        row = conn.execute(
            "SELECT id, balance FROM accounts WHERE id = ?", (str(account_id),)
        ).fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return Account.from_dict(dict(row))

    def get_account(self, account_id: UUID) -> Account:
        with self._atomic() as conn:
            return self._load_account(conn, account_id)

    def save_account(self, account: Account) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._atomic() as conn:
            conn.execute("""
                INSERT INTO accounts (id, balance, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    balance = excluded.balance,
                    updated_at = excluded.updated_at
            """, (str(account.id), str(account.balance), now, now))

    def save_transaction(self, account_id: UUID, transaction: Transaction) -> None:
        with self._atomic() as conn:
            account = self._load_account(conn, account_id)
            balance = add_amounts(account.balance, transaction.amount)
            record = transaction.to_dict()
            conn.execute("""
                INSERT INTO ledger_transactions
                    (id, account_id, amount, transaction_type, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (
                record["transaction_id"], str(account_id), record["amount"],
                record["transaction_type"], record["timestamp"],
            ))
            conn.execute(
                "UPDATE accounts SET balance = ?, updated_at = ? WHERE id = ?",
                (
                    str(balance),
                    datetime.now(timezone.utc).isoformat(),
                    str(account_id),
                ),
            )

    def get_transactions(
        self, account_id: UUID, page: int, limit: int
    ) -> Tuple[List[Transaction], int]:
        validate_page(page, limit)

        with self._atomic() as conn:
            total = conn.execute(
                "SELECT COUNT(*) AS count FROM ledger_transactions WHERE account_id = ?",
                (str(account_id),),
            ).fetchone()["count"]

            offset = page * limit
            if offset >= total:
                return [], 0

            rows = conn.execute("""
                SELECT id, amount, transaction_type, created_at
                FROM ledger_transactions
                WHERE account_id = ?
                ORDER BY created_at DESC, seq DESC
                LIMIT ? OFFSET ?
            """, (str(account_id), min(limit, total - offset), offset)).fetchall()

        transactions = [
            Transaction(
                transaction_id=UUID(row["id"]),
                amount=Decimal(row["amount"]),
                timestamp=datetime.fromisoformat(row["created_at"]),
                transaction_type=TransactionType(row["transaction_type"]),
            )
            for row in rows
        ]
        end = min(offset + limit, total)
        next_page = page + 1 if end < total else 0
        return transactions, next_page

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
