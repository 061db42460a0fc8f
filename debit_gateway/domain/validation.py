"""Precondition checks run before a debit card is created or modified"""

import dataclasses
import logging

from debit_gateway.domain.exceptions import BusinessRuleViolation
from debit_gateway.domain.interfaces import AccountGateway, CustomerGateway, DebitCardStore
from debit_gateway.domain.models import DebitCard, utcnow

logger = logging.getLogger(__name__)


class DebitValidator:
    """
    Sequential validation chain for debit card mutations.

    Each check raises on failure, so awaiting them in order gives the
    short-circuit: nothing after the first failing check runs.
    """

    def __init__(
        self,
        customer_gateway: CustomerGateway,
        account_gateway: AccountGateway,
        store: DebitCardStore,
    ):
        self.customer_gateway = customer_gateway
        self.account_gateway = account_gateway
        self.store = store

    async def validate_customer_active(self, customer_id: str) -> None:
        """
        Raises:
            CustomerNotFoundError: Customer does not exist
            BusinessRuleViolation: Customer exists but is inactive
        """
        customer = await self.customer_gateway.get_customer(customer_id)
        if not customer.active:
            raise BusinessRuleViolation(f"Customer is inactive: {customer_id}")
        logger.debug("Customer is active", extra={"customer_id": customer_id})

    async def validate_account_active(self, account_id: str) -> None:
        """
        Raises:
            AccountNotFoundError: Account does not exist
            BusinessRuleViolation: Account exists but is inactive
        """
        account = await self.account_gateway.get_account(account_id)
        if not account.active:
            raise BusinessRuleViolation(f"Account is inactive: {account_id}")
        logger.debug("Account is active", extra={"account_id": account_id})

    async def validate_card_not_exists(self, customer_id: str, account_id: str) -> None:
        existing = self.store.find_by_customer_and_primary_account(customer_id, account_id)
        if existing is not None:
            logger.warning(
                "Debit card already exists",
                extra={"customer_id": customer_id, "account_id": account_id},
            )
            raise BusinessRuleViolation("Customer already has a debit card for this account")

    def validate_account_not_associated(self, card: DebitCard, account_id: str) -> None:
        if account_id in card.associated_accounts:
            logger.warning(
                "Account already associated",
                extra={"account_id": account_id, "debit_card_id": card.id},
            )
            raise BusinessRuleViolation(
                f"Account {account_id} is already associated with this debit card"
            )

    async def validate_for_creation(self, customer_id: str, primary_account_id: str) -> None:
        """Customer active → account active → no existing card for the pair"""
        await self.validate_customer_active(customer_id)
        await self.validate_account_active(primary_account_id)
        await self.validate_card_not_exists(customer_id, primary_account_id)

    async def validate_and_associate(self, card: DebitCard, account_id: str) -> DebitCard:
        """
        Validate the account and return a copy of the card with it appended.

        The input card is never modified; persisting the result is up to
        the caller.
        """
        await self.validate_account_active(account_id)
        self.validate_account_not_associated(card, account_id)

        associated = dataclasses.replace(
            card,
            associated_accounts=[*card.associated_accounts, account_id],
            updated_at=utcnow(),
        )
        logger.debug(
            "Account appended to associated accounts",
            extra={"account_id": account_id, "debit_card_id": card.id},
        )
        return associated
