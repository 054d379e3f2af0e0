from decimal import Decimal
from typing import Iterable, List, Optional
import structlog

from accounts import Account
from errors import (
    DisputeForDifferentClient,
    DuplicateTransaction,
    InvalidAmount,
    InvalidTransactionType,
    NotDisputed,
    PaymentEngineError,
    TransactionAlreadyDisputed,
    TransactionNotFound,
)
from models import (
    AccountStatus,
    Chargeback,
    Deposit,
    Dispute,
    LedgerEntry,
    ProcessingSummary,
    Resolve,
    Transaction,
    TransactionType,
    Withdrawal,
)
from repositories import (
    AccountRepository,
    InMemoryAccountRepository,
    InMemoryTransactionRepository,
    TransactionRepository,
)

logger = structlog.get_logger()


class PaymentEngine:
    """Folds transactions into client accounts.

    The engine owns the client -> account map and the history of deposits
    and withdrawals. Transactions are applied one at a time; a rejected
    transaction raises a ``PaymentEngineError`` and leaves every balance
    untouched.
    """

    def __init__(
        self,
        account_repo: Optional[AccountRepository] = None,
        transaction_repo: Optional[TransactionRepository] = None,
    ):
        self.account_repo = account_repo or InMemoryAccountRepository()
        self.transaction_repo = transaction_repo or InMemoryTransactionRepository()

    def process(self, transaction: Transaction) -> AccountStatus:
        """Apply one transaction and return the client's account afterwards."""
        account = self.account_repo.get_or_create(transaction.client)

        if isinstance(transaction, Deposit):
            self._process_deposit(transaction, account)
        elif isinstance(transaction, Withdrawal):
            self._process_withdrawal(transaction, account)
        elif isinstance(transaction, (Dispute, Resolve, Chargeback)):
            self._process_dispute_operation(transaction, account)
        else:
            raise InvalidTransactionType(f"unsupported transaction: {type(transaction).__name__}")

        return account.status()

    def process_all(self, transactions: Iterable[Transaction]) -> ProcessingSummary:
        """Apply transactions in order, logging and counting rejections.

        A rejected transaction never stops the run.
        """
        summary = ProcessingSummary()

        for transaction in transactions:
            try:
                self.process(transaction)
            except PaymentEngineError as e:
                summary.rejected += 1
                summary.errors[e.code] = summary.errors.get(e.code, 0) + 1
                log = logger.info if e.business_outcome else logger.warning
                log(
                    "Transaction rejected",
                    transaction_id=transaction.tx,
                    client_id=transaction.client,
                    type=transaction.type,
                    error_code=e.code,
                    error=str(e),
                )
            else:
                summary.processed += 1

        logger.info(
            "Transactions processed",
            processed=summary.processed,
            rejected=summary.rejected,
            accounts=self.account_repo.count(),
        )
        return summary

    def snapshot(self, sort: bool = False) -> List[AccountStatus]:
        """Current state of every known account.

        Order is unspecified unless ``sort`` is set, in which case accounts
        come in ascending client id order.
        """
        accounts = self.account_repo.all()
        if sort:
            accounts = sorted(accounts, key=lambda account: account.client)
        return [account.status() for account in accounts]

    def get_account(self, client: int) -> Optional[AccountStatus]:
        account = self.account_repo.get(client)
        if account is None:
            return None
        return account.status()

    def _check_new_movement(self, transaction, kind: str) -> None:
        if transaction.amount < Decimal(0):
            raise InvalidAmount(transaction.amount, f"{kind} amount cannot be negative")

        if self.transaction_repo.exists(transaction.tx):
            raise DuplicateTransaction(transaction.tx)

    def _process_deposit(self, transaction: Deposit, account: Account) -> None:
        self._check_new_movement(transaction, "deposit")

        account.deposit(transaction.amount)
        self._record(transaction, TransactionType.deposit)

        logger.debug(
            "Deposit processed",
            transaction_id=transaction.tx,
            client_id=account.client,
            amount=str(transaction.amount),
            available=str(account.available),
        )

    def _process_withdrawal(self, transaction: Withdrawal, account: Account) -> None:
        self._check_new_movement(transaction, "withdrawal")

        account.withdraw(transaction.amount)
        self._record(transaction, TransactionType.withdrawal)

        logger.debug(
            "Withdrawal processed",
            transaction_id=transaction.tx,
            client_id=account.client,
            amount=str(transaction.amount),
            available=str(account.available),
        )

    def _process_dispute_operation(self, transaction, account: Account) -> None:
        entry = self.transaction_repo.get(transaction.tx)
        if entry is None:
            raise TransactionNotFound(transaction.tx)

        if entry.client != transaction.client:
            raise DisputeForDifferentClient(transaction.tx, transaction.client, entry.client)

        amount = entry.disputed_amount

        if isinstance(transaction, Dispute):
            if entry.is_disputed:
                raise TransactionAlreadyDisputed(transaction.tx)
            account.hold_funds(amount)
            entry.is_disputed = True
        elif isinstance(transaction, Resolve):
            if not entry.is_disputed:
                raise NotDisputed(transaction.tx)
            account.release_funds(amount)
            entry.is_disputed = False
        elif isinstance(transaction, Chargeback):
            if not entry.is_disputed:
                raise NotDisputed(transaction.tx)
            account.chargeback(amount)
            entry.is_disputed = False
        else:
            raise InvalidTransactionType(f"{transaction.type} is not a dispute operation")

        logger.debug(
            "Dispute operation processed",
            transaction_id=transaction.tx,
            client_id=account.client,
            type=transaction.type,
            held=str(account.held),
            locked=account.locked,
        )

    def _record(self, transaction, kind: TransactionType) -> None:
        self.transaction_repo.add(
            LedgerEntry(
                client=transaction.client,
                tx=transaction.tx,
                type=kind,
                amount=transaction.amount,
            )
        )


# Factory function for dependency injection
def get_payment_engine(
    account_repo: Optional[AccountRepository] = None,
    transaction_repo: Optional[TransactionRepository] = None,
) -> PaymentEngine:
    return PaymentEngine(account_repo, transaction_repo)
