"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DebitCard:
    """Debit card linking one primary and N secondary funding accounts"""

    customer_id: str
    primary_account_id: str
    associated_accounts: List[str] = field(default_factory=list)
    active: bool = True
    card_number: str = ""
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    version: int = 0  # 0 = never persisted


@dataclass
class Customer:
    """Customer as reported by the customer service"""

    id: str
    active: bool


@dataclass
class Account:
    """Bank account as reported by the account service"""

    id: str
    active: bool


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    PENDING = "PENDING"


@dataclass
class TransactionOutcome:
    """Result of a withdrawal as reported by the transaction service"""

    transaction_id: str
    status: TransactionStatus
    created_at: datetime
    error_message: Optional[str] = None
    error_code: Optional[str] = None


@dataclass
class WithdrawalAttempt:
    """One withdrawal try against a single associated account"""

    account_id: str
    amount: Decimal
    description: Optional[str]
    sequence_index: int


@dataclass
class WithdrawalResult:
    """Successful withdrawal tagged with the account that covered it"""

    debit_card_id: str
    account_id: str
    sequence_index: int
    accounts_attempted: int
    amount: Decimal
    description: Optional[str]
    outcome: TransactionOutcome
