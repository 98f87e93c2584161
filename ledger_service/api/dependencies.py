"""
Ledger system wiring and FastAPI dependencies
"""

from typing import Optional

from ..config import LedgerConfig, get_config
from ..storage import InMemoryLedgerStore, LedgerStore, SQLiteLedgerStore
from ..transactions import TransactionManager


class LedgerSystem:
    """Ledger store and transaction manager wired together"""

    def __init__(self, store: Optional[LedgerStore] = None, max_page_limit: int = 25):
        self.store = store or InMemoryLedgerStore()
        self.transaction_manager = TransactionManager(self.store)
        self.max_page_limit = max_page_limit

    @classmethod
    def from_config(cls, config: LedgerConfig) -> 'LedgerSystem':
        """Build the system with the storage backend selected in configuration"""
        if config.storage_backend == "sqlite":
            store = SQLiteLedgerStore(config.database_path)
        else:
            store = InMemoryLedgerStore()
        return cls(store=store, max_page_limit=config.max_page_limit)

    def close(self) -> None:
        self.store.close()


_ledger_system: Optional[LedgerSystem] = None


def get_ledger_system() -> LedgerSystem:
    """Dependency returning the process-wide ledger system"""
    global _ledger_system
    if _ledger_system is None:
        _ledger_system = LedgerSystem.from_config(get_config())
    return _ledger_system


def reset_ledger_system() -> None:
    """Close and drop the process-wide ledger system"""
    global _ledger_system
    if _ledger_system is not None:
        _ledger_system.close()
        _ledger_system = None
