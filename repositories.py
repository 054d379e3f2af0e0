from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from accounts import Account
from models import LedgerEntry


class AccountRepository(ABC):
    @abstractmethod
    def get(self, client: int) -> Optional[Account]:
        """Get account by client id. Returns None if the client is unknown."""
        pass

    @abstractmethod
    def get_or_create(self, client: int) -> Account:
        """Get account by client id, opening an empty one on first use."""
        pass

    @abstractmethod
    def all(self) -> List[Account]:
        """Get every known account."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total number of accounts."""
        pass


class TransactionRepository(ABC):
    @abstractmethod
    def get(self, tx: int) -> Optional[LedgerEntry]:
        """Get stored deposit or withdrawal by transaction id."""
        pass

    @abstractmethod
    def add(self, entry: LedgerEntry) -> None:
        """Store a deposit or withdrawal for later disputes."""
        pass

    @abstractmethod
    def exists(self, tx: int) -> bool:
        """Check if a transaction id is already stored."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total number of stored transactions."""
        pass


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Account] = {}

    def get(self, client: int) -> Optional[Account]:
        return self.accounts.get(client)

    def get_or_create(self, client: int) -> Account:
        account = self.accounts.get(client)
        if account is None:
            account = Account(client)
            self.accounts[client] = account
        return account

    def all(self) -> List[Account]:
        return list(self.accounts.values())

    def count(self) -> int:
        return len(self.accounts)


class InMemoryTransactionRepository(TransactionRepository):
    def __init__(self):
        self.store: Dict[int, LedgerEntry] = {}

    def get(self, tx: int) -> Optional[LedgerEntry]:
        return self.store.get(tx)

    def add(self, entry: LedgerEntry) -> None:
        if entry.tx in self.store:
            raise ValueError(f"Transaction {entry.tx} already stored")
        self.store[entry.tx] = entry

    def exists(self, tx: int) -> bool:
        return tx in self.store

    def count(self) -> int:
        return len(self.store)
