"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

from debit_gateway.domain.models import DebitCard, WithdrawalResult


class CreateDebitCardRequest(BaseModel):
    """Request body for POST /v1/debit-cards"""

    customer_id: str = Field(..., min_length=1, description="Customer identifier")
    primary_account_id: str = Field(..., min_length=1, description="Primary funding account")


class AssociateAccountRequest(BaseModel):
    """Request body for POST /v1/debit-cards/associate"""

    customer_id: str = Field(..., min_length=1, description="Customer owning the active card")
    account_id: str = Field(..., min_length=1, description="Account to link to the card")


class DebitCardResponse(BaseModel):
    """Debit card representation"""

    id: str
    customer_id: str
    primary_account_id: str
    associated_accounts: List[str]
    card_number: str
    active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, card: DebitCard) -> "DebitCardResponse":
        return cls(
            id=card.id,
            customer_id=card.customer_id,
            primary_account_id=card.primary_account_id,
            associated_accounts=card.associated_accounts,
            card_number=card.card_number,
            active=card.active,
            created_at=card.created_at,
            updated_at=card.updated_at,
        )


class DebitTransactionRequest(BaseModel):
    """Request body for POST /v1/debit-cards/transactions"""

    debit_card_id: str = Field(..., min_length=1, description="Debit card to charge")
    # Positivity is a business rule checked by the service, not a schema error
    amount: Optional[Decimal] = Field(
        None,
        max_digits=15,
        decimal_places=2,
        allow_inf_nan=False,
        description="Amount to withdraw",
    )
    description: Optional[str] = Field(None, max_length=255)


class DebitTransactionResponse(BaseModel):
    """Response for POST /v1/debit-cards/transactions"""

    transaction_id: str
    debit_card_id: str
    account_id: str
    amount: Decimal
    description: Optional[str] = None
    status: str
    timestamp: datetime
    accounts_attempted: int

    @classmethod
    def from_result(cls, result: WithdrawalResult) -> "DebitTransactionResponse":
        return cls(
            transaction_id=result.outcome.transaction_id,
            debit_card_id=result.debit_card_id,
            account_id=result.account_id,
            amount=result.amount,
            description=result.description,
            status=result.outcome.status.value,
            timestamp=result.outcome.created_at,
            accounts_attempted=result.accounts_attempted,
        )
