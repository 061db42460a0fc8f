"""Waterfall withdrawal across a debit card's associated accounts"""

import logging
from decimal import Decimal
from typing import Optional

from debit_gateway.domain.exceptions import (
    AggregateInsufficientFundsError,
    BusinessRuleViolation,
    DomainException,
    ErrorKind,
)
from debit_gateway.domain.interfaces import TransactionGateway
from debit_gateway.domain.models import DebitCard, WithdrawalAttempt, WithdrawalResult
from debit_gateway.infrastructure.observability.metrics import withdrawal_fallthrough_counter

logger = logging.getLogger(__name__)


def _continues_waterfall(error: Exception) -> bool:
    return isinstance(error, DomainException) and error.kind is ErrorKind.INSUFFICIENT_FUNDS


class WithdrawalOrchestrator:
    """
    Withdraws from associated accounts in order until one succeeds.

    Only insufficient funds moves on to the next account. Any other error
    (service unavailable, rejected transaction, ...) stops immediately and
    propagates, so no later account is called.
    """

    def __init__(self, transaction_gateway: TransactionGateway):
        self.transaction_gateway = transaction_gateway

    async def withdraw(
        self, card: DebitCard, amount: Decimal, description: Optional[str]
    ) -> WithdrawalResult:
        """
        Raises:
            BusinessRuleViolation: Card inactive or without accounts
            AggregateInsufficientFundsError: No account could cover the amount
            DomainException: First non-funds failure, unchanged
        """
        if not card.active:
            raise BusinessRuleViolation(f"Debit card is not active: {card.id}")
        accounts = card.associated_accounts
        if not accounts:
            raise BusinessRuleViolation(f"Debit card has no associated accounts: {card.id}")

        total = len(accounts)
        logger.info(
            "Processing withdrawal",
            extra={"debit_card_id": card.id, "associated_accounts": total},
        )

        for index, account_id in enumerate(accounts):
            attempt = WithdrawalAttempt(
                account_id=account_id,
                amount=amount,
                description=description,
                sequence_index=index,
            )
            logger.info(
                "Attempting withdrawal",
                extra={"account_id": account_id, "position": f"{index + 1}/{total}"},
            )

            try:
                outcome = await self.transaction_gateway.withdraw(
                    attempt.account_id, attempt.amount, attempt.description
                )
            except Exception as error:
                if not _continues_waterfall(error):
                    logger.error(
                        "Unrecoverable withdrawal error",
                        extra={"account_id": account_id, "error": str(error)},
                    )
                    raise
                withdrawal_fallthrough_counter.inc()
                logger.warning(
                    "Insufficient funds, trying next account",
                    extra={"account_id": account_id, "position": f"{index + 1}/{total}"},
                )
                continue

            logger.info(
                "Withdrawal succeeded",
                extra={
                    "account_id": account_id,
                    "transaction_id": outcome.transaction_id,
                    "status": outcome.status.value,
                },
            )
            return WithdrawalResult(
                debit_card_id=card.id,
                account_id=attempt.account_id,
                sequence_index=attempt.sequence_index,
                accounts_attempted=index + 1,
                amount=amount,
                description=description,
                outcome=outcome,
            )

        logger.error("Insufficient funds in all associated accounts", extra={"accounts": total})
        raise AggregateInsufficientFundsError(total)
