from decimal import Decimal

from errors import AccountLocked, InsufficientFunds
from models import AccountStatus


class Account:
    """Balances of a single client.

    Only ``deposit`` and ``withdraw`` honour the lock. Dispute bookkeeping
    (hold, release, chargeback) always applies, since the chargeback is
    what sets the lock in the first place.
    """

    def __init__(self, client: int):
        self.client = client
        self._available = Decimal(0)
        self._held = Decimal(0)
        self._total = Decimal(0)
        self._locked = False

    @property
    def available(self) -> Decimal:
        return self._available

    @property
    def held(self) -> Decimal:
        return self._held

    @property
    def total(self) -> Decimal:
        return self._total

    @property
    def locked(self) -> bool:
        return self._locked

    def deposit(self, amount: Decimal) -> None:
        if self._locked:
            raise AccountLocked(self.client)

        self._available += amount
        self._total += amount

    def withdraw(self, amount: Decimal) -> None:
        if self._locked:
            raise AccountLocked(self.client)

        if self._available < amount:
            raise InsufficientFunds(self.client, self._available, amount)

        self._available -= amount
        self._total -= amount

    def hold_funds(self, amount: Decimal) -> None:
        # available may go negative when a withdrawal is disputed
        self._available -= amount
        self._held += amount

    def release_funds(self, amount: Decimal) -> None:
        self._held -= amount
        self._available += amount

    def chargeback(self, amount: Decimal) -> None:
        self._held -= amount
        self._total -= amount
        self._locked = True

    def status(self) -> AccountStatus:
        return AccountStatus(
            client=self.client,
            available=self._available,
            held=self._held,
            total=self._total,
            locked=self._locked,
        )

    def __repr__(self) -> str:
        return (
            f"Account(client={self.client}, available={self._available}, "
            f"held={self._held}, total={self._total}, locked={self._locked})"
        )
