"""Transaction service HTTP client for account withdrawals"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from debit_gateway.config import settings
from debit_gateway.domain.exceptions import (
    InsufficientFundsError,
    TransactionRejectedError,
    UpstreamServiceError,
)
from debit_gateway.domain.interfaces import TransactionGateway
from debit_gateway.domain.models import TransactionOutcome, TransactionStatus, utcnow
from debit_gateway.infrastructure.clients.http import raise_for_upstream_status
from debit_gateway.infrastructure.resilience import ResilientCaller

logger = logging.getLogger(__name__)

SERVICE_NAME = "transaction-service"

INSUFFICIENT_FUNDS_CODE = "INSUFFICIENT_FUNDS"
# Free-text markers, only consulted when the response carries no errorCode
INSUFFICIENT_FUNDS_MARKERS = ("insufficient funds", "insufficient balance", "fondos insuficientes")


def is_insufficient_funds(outcome: TransactionOutcome) -> bool:
    """Classify a FAILED outcome, preferring the structured error code over the message"""
    if outcome.error_code:
        return outcome.error_code.strip().upper() == INSUFFICIENT_FUNDS_CODE
    message = (outcome.error_message or "").lower()
    return any(marker in message for marker in INSUFFICIENT_FUNDS_MARKERS)


def parse_outcome(data: Dict[str, Any]) -> TransactionOutcome:
    created_at = data.get("createdAt")
    if created_at:
        created_at = datetime.fromisoformat(created_at)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
    else:
        created_at = utcnow()

    return TransactionOutcome(
        transaction_id=str(data["id"]),
        status=TransactionStatus(str(data["status"]).upper()),
        created_at=created_at,
        error_message=data.get("errorMessage"),
        error_code=data.get("errorCode"),
    )


class TransactionClient(TransactionGateway):
    """Client for the external transaction service"""

    def __init__(
        self,
        caller: ResilientCaller,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.caller = caller
        self.base_url = base_url or settings.transaction_service_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def withdraw(
        self, account_id: str, amount: Decimal, description: Optional[str]
    ) -> TransactionOutcome:
        """
        Withdraw from one account.

        A FAILED response is raised as InsufficientFundsError when the
        service reports missing funds and as TransactionRejectedError
        otherwise. COMPLETED and PENDING outcomes are returned.

        Raises:
            InsufficientFundsError: Account cannot cover the amount
            TransactionRejectedError: Withdrawal declined for another reason
            ServiceUnavailableError: Service down, timing out or circuit open
        """
        return await self.caller.call(lambda: self._post_withdrawal(account_id, amount, description))

    async def _post_withdrawal(
        self, account_id: str, amount: Decimal, description: Optional[str]
    ) -> TransactionOutcome:
        logger.info(
            "Calling transaction service",
            extra={"account_id": account_id, "amount": str(amount)},
        )
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.post(
                "/api/transactions/withdrawal",
                json={
                    "accountId": account_id,
                    "amount": str(amount),
                    "description": description,
                },
            )

        raise_for_upstream_status(response, SERVICE_NAME)

        try:
            outcome = parse_outcome(response.json())
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise UpstreamServiceError(f"Invalid transaction data from {SERVICE_NAME}: {e}") from e

        if outcome.status is TransactionStatus.FAILED:
            logger.warning(
                "Withdrawal failed",
                extra={
                    "account_id": account_id,
                    "transaction_id": outcome.transaction_id,
                    "error_code": outcome.error_code,
                    "error_message": outcome.error_message,
                },
            )
            if is_insufficient_funds(outcome):
                raise InsufficientFundsError(
                    outcome.error_message or f"Insufficient funds in account {account_id}"
                )
            raise TransactionRejectedError(f"Transaction failed: {outcome.error_message}")

        return outcome
