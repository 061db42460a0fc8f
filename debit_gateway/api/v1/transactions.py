"""POST /v1/debit-cards/transactions - waterfall withdrawal endpoint"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from debit_gateway.api.dependencies import get_debit_service, get_request_id
from debit_gateway.api.errors import to_http_exception
from debit_gateway.api.v1.schemas import DebitTransactionRequest, DebitTransactionResponse
from debit_gateway.domain.exceptions import (
    AggregateInsufficientFundsError,
    DomainException,
    ErrorKind,
)
from debit_gateway.domain.service import DebitService
from debit_gateway.infrastructure.observability.logging import log_withdrawal
from debit_gateway.infrastructure.observability.metrics import record_withdrawal

router = APIRouter()

_OUTCOME_BY_KIND = {
    ErrorKind.INSUFFICIENT_FUNDS: "insufficient_funds",
    ErrorKind.SERVICE_UNAVAILABLE: "unavailable",
    ErrorKind.UPSTREAM_FAILURE: "unavailable",
}


@router.post("/debit-cards/transactions", response_model=DebitTransactionResponse, status_code=201)
async def process_transaction(
    request_body: DebitTransactionRequest,
    request: Request,
    service: DebitService = Depends(get_debit_service),
):
    """
    Withdraw an amount with a debit card.

    Associated accounts are tried in order; the next account is used only
    when the current one has insufficient funds.

    Errors:
        400: Non-positive amount or inactive card
        404: Card not found
        422: Insufficient funds in every associated account
        503: Transaction service unavailable
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = await service.process_transaction(
            request_body.debit_card_id, request_body.amount, request_body.description
        )

    except DomainException as e:
        attempted = e.accounts_attempted if isinstance(e, AggregateInsufficientFundsError) else None
        record_withdrawal(_OUTCOME_BY_KIND.get(e.kind, "rejected"), attempted)
        logging.warning(f"Withdrawal failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_withdrawal(result.outcome.status.value.lower(), result.accounts_attempted)
    log_withdrawal(request_id, result, duration_ms)

    return DebitTransactionResponse.from_result(result)
