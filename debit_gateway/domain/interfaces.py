"""Contracts for the external collaborators used by the domain layer"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from debit_gateway.domain.models import Account, Customer, DebitCard, TransactionOutcome


class CustomerGateway(ABC):
    """Read access to the customer service"""

    @abstractmethod
    async def get_customer(self, customer_id: str) -> Customer:
        """
        Fetch a customer by id.

        Raises:
            CustomerNotFoundError: If the customer doesn't exist
            ServiceUnavailableError: If the service cannot be reached
        """
        ...


class AccountGateway(ABC):
    """Read access to the account service"""

    @abstractmethod
    async def get_account(self, account_id: str) -> Account:
        """
        Fetch an account by id.

        Raises:
            AccountNotFoundError: If the account doesn't exist
            ServiceUnavailableError: If the service cannot be reached
        """
        ...


class TransactionGateway(ABC):
    """Withdrawal operations on the transaction service"""

    @abstractmethod
    async def withdraw(
        self, account_id: str, amount: Decimal, description: Optional[str]
    ) -> TransactionOutcome:
        """
        Withdraw an amount from a single account.

        Raises:
            InsufficientFundsError: If the account cannot cover the amount
            TransactionRejectedError: If the service declined for another reason
            ServiceUnavailableError: If the service cannot be reached
        """
        ...


class DebitCardStore(ABC):
    """Persistence for debit cards"""

    @abstractmethod
    def save(self, card: DebitCard) -> DebitCard:
        """
        Insert or update a card and return the stored version.

        Raises:
            ConcurrentUpdateError: If the card changed since it was read
        """
        ...

    @abstractmethod
    def find_by_id(self, card_id: str) -> Optional[DebitCard]:
        ...

    @abstractmethod
    def find_by_customer_and_primary_account(
        self, customer_id: str, account_id: str
    ) -> Optional[DebitCard]:
        ...

    @abstractmethod
    def find_active_by_customer(self, customer_id: str) -> Optional[DebitCard]:
        ...
