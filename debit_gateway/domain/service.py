"""Debit card workflows: issuance, account association, withdrawals and lookups"""

import logging
from decimal import Decimal
from typing import Optional

from debit_gateway.domain.card_numbers import generate_card_number, mask_card_number
from debit_gateway.domain.exceptions import BusinessRuleViolation, DebitCardNotFoundError
from debit_gateway.domain.interfaces import DebitCardStore, TransactionGateway
from debit_gateway.domain.models import DebitCard, WithdrawalResult
from debit_gateway.domain.validation import DebitValidator
from debit_gateway.domain.withdrawal import WithdrawalOrchestrator

logger = logging.getLogger(__name__)

# Largest amount with 15 significant digits and 2 decimal places
MAX_AMOUNT = Decimal("9999999999999.99")


class DebitService:
    """Application service composing validation, persistence and withdrawals"""

    def __init__(
        self,
        validator: DebitValidator,
        store: DebitCardStore,
        transaction_gateway: TransactionGateway,
    ):
        self.validator = validator
        self.store = store
        self.orchestrator = WithdrawalOrchestrator(transaction_gateway)

    async def create_debit_card(self, customer_id: str, primary_account_id: str) -> DebitCard:
        """
        Issue a debit card for a customer's primary account.

        Flow:
        1. Customer must exist and be active
        2. Primary account must exist and be active
        3. No card may exist yet for (customer, primary account)
        4. Persist a new active card linked to the primary account only
        """
        logger.info(
            "Creating debit card",
            extra={"customer_id": customer_id, "account_id": primary_account_id},
        )
        await self.validator.validate_for_creation(customer_id, primary_account_id)

        card = DebitCard(
            customer_id=customer_id,
            primary_account_id=primary_account_id,
            associated_accounts=[primary_account_id],
            active=True,
            card_number=mask_card_number(generate_card_number()),
        )
        saved = self.store.save(card)
        logger.info("Created debit card", extra={"debit_card_id": saved.id})
        return saved

    async def associate_account(self, customer_id: str, account_id: str) -> DebitCard:
        """Append a secondary account to the customer's active debit card"""
        logger.info(
            "Associating account to debit card",
            extra={"customer_id": customer_id, "account_id": account_id},
        )
        card = self.get_active_debit_card(customer_id)
        associated = await self.validator.validate_and_associate(card, account_id)
        saved = self.store.save(associated)
        logger.info(
            "Account associated",
            extra={"debit_card_id": saved.id, "account_id": account_id},
        )
        return saved

    def get_active_debit_card(self, customer_id: str) -> DebitCard:
        card = self.store.find_active_by_customer(customer_id)
        if card is None:
            raise DebitCardNotFoundError(f"No active debit card found for customer: {customer_id}")
        return card

    async def process_transaction(
        self, debit_card_id: str, amount: Optional[Decimal], description: Optional[str]
    ) -> WithdrawalResult:
        """
        Withdraw an amount using the card's associated accounts in order.

        The amount is checked before anything else so an invalid request
        never reaches a downstream service.
        """
        logger.info(
            "Processing transaction",
            extra={"debit_card_id": debit_card_id, "amount": str(amount)},
        )
        if amount is None or not amount.is_finite() or amount <= 0:
            raise BusinessRuleViolation("Amount must be greater than 0")
        if amount > MAX_AMOUNT:
            raise BusinessRuleViolation(f"Amount exceeds the maximum of {MAX_AMOUNT}")

        card = self.get_debit_card(debit_card_id)
        if not card.active:
            raise BusinessRuleViolation(f"Debit card is not active: {debit_card_id}")

        return await self.orchestrator.withdraw(card, amount, description)

    def get_debit_card(self, debit_card_id: str) -> DebitCard:
        card = self.store.find_by_id(debit_card_id)
        if card is None:
            raise DebitCardNotFoundError(f"Debit card not found: {debit_card_id}")
        return card

    def get_debit_card_by_customer(self, customer_id: str) -> DebitCard:
        return self.get_active_debit_card(customer_id)
