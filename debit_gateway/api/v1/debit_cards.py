"""Debit card issuance, account association and lookup endpoints"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from debit_gateway.api.dependencies import get_debit_service, get_request_id
from debit_gateway.api.errors import to_http_exception
from debit_gateway.api.v1.schemas import (
    AssociateAccountRequest,
    CreateDebitCardRequest,
    DebitCardResponse,
)
from debit_gateway.domain.exceptions import DomainException
from debit_gateway.domain.service import DebitService
from debit_gateway.infrastructure.database.session import get_db
from debit_gateway.infrastructure.observability.metrics import debit_card_counter

router = APIRouter()


@router.post("/debit-cards", response_model=DebitCardResponse, status_code=201)
async def create_debit_card(
    request_body: CreateDebitCardRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: DebitService = Depends(get_debit_service),
):
    """
    Issue a debit card linked to the customer's primary account.

    Flow:
    1. Validate customer is active (customer service)
    2. Validate primary account is active (account service)
    3. Reject if a card already exists for this customer/account pair
    4. Persist the new card and commit
    """
    request_id = get_request_id(request)

    try:
        card = await service.create_debit_card(
            request_body.customer_id, request_body.primary_account_id
        )
        db.commit()
        debit_card_counter.labels(operation="created").inc()
        return DebitCardResponse.from_domain(card)

    except DomainException as e:
        db.rollback()
        logging.warning(f"Debit card creation failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/debit-cards/associate", response_model=DebitCardResponse)
async def associate_account(
    request_body: AssociateAccountRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: DebitService = Depends(get_debit_service),
):
    """Link another active account to the customer's active debit card"""
    request_id = get_request_id(request)

    try:
        card = await service.associate_account(request_body.customer_id, request_body.account_id)
        db.commit()
        debit_card_counter.labels(operation="account_associated").inc()
        return DebitCardResponse.from_domain(card)

    except DomainException as e:
        db.rollback()
        logging.warning(f"Account association failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/debit-cards/customer/{customer_id}", response_model=DebitCardResponse)
def get_debit_card_by_customer(
    customer_id: str,
    service: DebitService = Depends(get_debit_service),
):
    """Retrieve the customer's active debit card"""
    try:
        return DebitCardResponse.from_domain(service.get_debit_card_by_customer(customer_id))
    except DomainException as e:
        raise to_http_exception(e)


@router.get("/debit-cards/{debit_card_id}", response_model=DebitCardResponse)
def get_debit_card(
    debit_card_id: str,
    service: DebitService = Depends(get_debit_service),
):
    """Retrieve a debit card by id"""
    try:
        return DebitCardResponse.from_domain(service.get_debit_card(debit_card_id))
    except DomainException as e:
        raise to_http_exception(e)
