"""Errors raised by the payment engine when it rejects a transaction."""

from decimal import Decimal


class PaymentEngineError(Exception):
    """Base class for rejected transactions.

    ``business_outcome`` marks rejections that are expected from an untrusted
    upstream (insufficient funds, disputes naming unknown transactions...).
    They are recorded but never treated as failures of the run.
    """

    code: str = "PAYMENT_ENGINE_ERROR"
    business_outcome: bool = False


class InsufficientFunds(PaymentEngineError):
    """Withdrawal larger than the available balance."""

    code = "INSUFFICIENT_FUNDS"
    business_outcome = True

    def __init__(self, client: int, available: Decimal, requested: Decimal):
        self.client = client
        self.available = available
        self.requested = requested
        super().__init__(
            f"insufficient funds for withdrawal: client {client} has "
            f"{available} available, {requested} requested"
        )


class AccountLocked(PaymentEngineError):
    code = "ACCOUNT_LOCKED"

    def __init__(self, client: int):
        self.client = client
        super().__init__(f"account is locked: {client}")


class InvalidTransactionType(PaymentEngineError):
    code = "INVALID_TRANSACTION_TYPE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid transaction type: {reason}")


class InvalidAmount(PaymentEngineError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: Decimal, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"invalid transaction amount: {amount} - {reason}")


class TransactionNotFound(PaymentEngineError):
    code = "TRANSACTION_NOT_FOUND"
    business_outcome = True

    def __init__(self, tx: int):
        self.tx = tx
        super().__init__(f"transaction (id={tx}) not found")


class TransactionAlreadyDisputed(PaymentEngineError):
    code = "TRANSACTION_ALREADY_DISPUTED"
    business_outcome = True

    def __init__(self, tx: int):
        self.tx = tx
        super().__init__(f"transaction (id={tx}) is already disputed")


class NotDisputed(PaymentEngineError):
    code = "NOT_DISPUTED"
    business_outcome = True

    def __init__(self, tx: int):
        self.tx = tx
        super().__init__(f"transaction (id={tx}) was not disputed")


class DisputeForDifferentClient(PaymentEngineError):
    code = "DISPUTE_FOR_DIFFERENT_CLIENT"

    def __init__(self, tx: int, client: int, owner: int):
        self.tx = tx
        self.client = client
        self.owner = owner
        super().__init__(
            f"dispute operations can only be applied to the same client account: "
            f"transaction (id={tx}) belongs to client {owner}, not {client}"
        )


class DuplicateTransaction(PaymentEngineError):
    """Deposit or withdrawal reusing an id already in the history."""

    code = "DUPLICATE_TRANSACTION"

    def __init__(self, tx: int):
        self.tx = tx
        super().__init__(f"transaction (id={tx}) already exists")
