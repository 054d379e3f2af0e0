from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Union
from datetime import datetime
from decimal import Decimal

from errors import InvalidTransactionType

CLIENT_ID_MAX = 65535
TRANSACTION_ID_MAX = 4294967295
AMOUNT_MAX_DIGITS = 19
AMOUNT_DECIMAL_PLACES = 4


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"


ClientId = Annotated[int, Field(ge=0, le=CLIENT_ID_MAX, description="Client identifier")]
TransactionId = Annotated[int, Field(ge=0, le=TRANSACTION_ID_MAX, description="Transaction identifier")]


class Deposit(BaseModel):
    type: Literal["deposit"] = "deposit"
    client: ClientId
    tx: TransactionId
    amount: Decimal = Field(
        ...,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Amount credited to the client"
    )


class Withdrawal(BaseModel):
    type: Literal["withdrawal"] = "withdrawal"
    client: ClientId
    tx: TransactionId
    amount: Decimal = Field(
        ...,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Amount debited from the client"
    )


class Dispute(BaseModel):
    type: Literal["dispute"] = "dispute"
    client: ClientId
    tx: TransactionId = Field(..., description="Id of the disputed deposit or withdrawal")


class Resolve(BaseModel):
    type: Literal["resolve"] = "resolve"
    client: ClientId
    tx: TransactionId = Field(..., description="Id of the disputed deposit or withdrawal")


class Chargeback(BaseModel):
    type: Literal["chargeback"] = "chargeback"
    client: ClientId
    tx: TransactionId = Field(..., description="Id of the disputed deposit or withdrawal")


AnyTransaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

Transaction = Annotated[AnyTransaction, Field(discriminator="type")]


class LedgerEntry(BaseModel):
    """Deposit or withdrawal kept in the history so it can be disputed later."""

    client: int
    tx: int
    type: TransactionType
    amount: Decimal
    is_disputed: bool = False

    @property
    def disputed_amount(self) -> Decimal:
        """Amount moved by dispute operations, negated for withdrawals."""
        if self.type == TransactionType.deposit:
            return self.amount
        elif self.type == TransactionType.withdrawal:
            return -self.amount
        raise InvalidTransactionType("dispute can only be applied to deposit or withdrawal")


class AccountStatus(BaseModel):
    client: int = Field(..., description="Client identifier")
    available: Decimal = Field(..., description="Funds available for withdrawal")
    held: Decimal = Field(..., description="Funds held by open disputes")
    total: Decimal = Field(..., description="Available plus held funds")
    locked: bool = Field(..., description="Whether the account was charged back")


class ProcessingSummary(BaseModel):
    processed: int = Field(0, description="Transactions applied")
    rejected: int = Field(0, description="Transactions rejected by the engine")
    errors: Dict[str, int] = Field(default_factory=dict, description="Rejections per error code")


class TransactionRecord(BaseModel):
    """One row of a transactions CSV file, before decoding."""

    type: TransactionType
    client: ClientId
    tx: TransactionId
    amount: Optional[Decimal] = Field(None, max_digits=AMOUNT_MAX_DIGITS, decimal_places=AMOUNT_DECIMAL_PLACES)

    @field_validator("type", "client", "tx", "amount", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            v = v.strip()
            # empty cells are missing values
            if v == "":
                return None
        return v

    def to_transaction(self) -> AnyTransaction:
        if self.type == TransactionType.deposit:
            if self.amount is None:
                raise ValueError("amount is required for deposit")
            return Deposit(client=self.client, tx=self.tx, amount=self.amount)
        elif self.type == TransactionType.withdrawal:
            if self.amount is None:
                raise ValueError("amount is required for withdrawal")
            return Withdrawal(client=self.client, tx=self.tx, amount=self.amount)
        elif self.type == TransactionType.dispute:
            return Dispute(client=self.client, tx=self.tx)
        elif self.type == TransactionType.resolve:
            return Resolve(client=self.client, tx=self.tx)
        elif self.type == TransactionType.chargeback:
            return Chargeback(client=self.client, tx=self.tx)
        raise ValueError(f"unknown transaction type: {self.type}")


class ProcessResponse(BaseModel):
    tx: int = Field(..., description="Transaction identifier")
    type: TransactionType = Field(..., description="Transaction type")
    status: Literal["processed"] = Field(..., description="Transaction status")
    account: AccountStatus = Field(..., description="Client account after the transaction")
    timestamp: datetime = Field(default_factory=datetime.now, description="Processing timestamp")


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error description")
    error_code: str = Field(..., description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.now)
    accounts_count: int = Field(..., description="Number of accounts in the ledger")
    transactions_stored: int = Field(..., description="Deposits and withdrawals kept for disputes")
