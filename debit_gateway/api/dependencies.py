"""Dependency injection for FastAPI endpoints"""

from dataclasses import dataclass, field
from typing import List

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from debit_gateway.config import Settings
from debit_gateway.domain.interfaces import AccountGateway, CustomerGateway, TransactionGateway
from debit_gateway.domain.service import DebitService
from debit_gateway.domain.validation import DebitValidator
from debit_gateway.infrastructure.clients import account, customer, transaction
from debit_gateway.infrastructure.database.repositories import DebitCardRepository
from debit_gateway.infrastructure.database.session import get_db
from debit_gateway.infrastructure.resilience import CircuitBreaker, ResilientCaller, RetryPolicy


@dataclass
class Gateways:
    """Downstream clients shared by all requests of one application"""

    customer: CustomerGateway
    account: AccountGateway
    transaction: TransactionGateway
    breakers: List[CircuitBreaker] = field(default_factory=list)


def build_caller(service_name: str, config: Settings) -> ResilientCaller:
    """One breaker per downstream service, owned by its caller"""
    breaker = CircuitBreaker(
        service_name,
        failure_threshold=config.circuit_failure_threshold,
        cooldown_seconds=config.circuit_cooldown_seconds,
    )
    return ResilientCaller(
        breaker,
        retry=RetryPolicy(
            max_attempts=config.retry_max_attempts,
            backoff_base=config.retry_backoff_base,
        ),
        timeout_seconds=config.http_timeout_seconds,
    )


def build_gateways(config: Settings) -> Gateways:
    customer_caller = build_caller(customer.SERVICE_NAME, config)
    account_caller = build_caller(account.SERVICE_NAME, config)
    transaction_caller = build_caller(transaction.SERVICE_NAME, config)

    return Gateways(
        customer=customer.CustomerClient(customer_caller, base_url=config.customer_service_url),
        account=account.AccountClient(account_caller, base_url=config.account_service_url),
        transaction=transaction.TransactionClient(
            transaction_caller, base_url=config.transaction_service_url
        ),
        breakers=[customer_caller.breaker, account_caller.breaker, transaction_caller.breaker],
    )


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_gateways(request: Request) -> Gateways:
    return request.app.state.gateways


def get_debit_service(
    db: Session = Depends(get_db),
    gateways: Gateways = Depends(get_gateways),
) -> DebitService:
    """Provide a debit service bound to the request's database session"""
    store = DebitCardRepository(db)
    validator = DebitValidator(gateways.customer, gateways.account, store)
    return DebitService(validator, store, gateways.transaction)
