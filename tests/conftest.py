"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Generator, List, Optional, Tuple, Union
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from debit_gateway.api.dependencies import Gateways
from debit_gateway.api.main import create_app
from debit_gateway.domain.exceptions import AccountNotFoundError, CustomerNotFoundError
from debit_gateway.domain.interfaces import AccountGateway, CustomerGateway, TransactionGateway
from debit_gateway.domain.models import Account, Customer, TransactionOutcome, TransactionStatus
from debit_gateway.infrastructure.database.models import Base
from debit_gateway.infrastructure.database.session import get_db


class FakeCustomerGateway(CustomerGateway):
    """In-memory customer service: customer id -> active flag"""

    def __init__(self, customers: Optional[Dict[str, bool]] = None):
        self.customers = customers or {}
        self.calls: List[str] = []

    async def get_customer(self, customer_id: str) -> Customer:
        self.calls.append(customer_id)
        if customer_id not in self.customers:
            raise CustomerNotFoundError(customer_id)
        return Customer(id=customer_id, active=self.customers[customer_id])


class FakeAccountGateway(AccountGateway):
    """In-memory account service: account id -> active flag"""

    def __init__(self, accounts: Optional[Dict[str, bool]] = None):
        self.accounts = accounts or {}
        self.calls: List[str] = []

    async def get_account(self, account_id: str) -> Account:
        self.calls.append(account_id)
        if account_id not in self.accounts:
            raise AccountNotFoundError(account_id)
        return Account(id=account_id, active=self.accounts[account_id])


class ScriptedTransactionGateway(TransactionGateway):
    """
    Transaction service returning a scripted result per account.

    A script entry is either an exception instance (raised) or a
    TransactionStatus (returned as an outcome). Accounts without an entry
    complete successfully.
    """

    def __init__(self, script: Optional[Dict[str, Union[Exception, TransactionStatus]]] = None):
        self.script = script or {}
        self.calls: List[Tuple[str, Decimal, Optional[str]]] = []

    @property
    def called_accounts(self) -> List[str]:
        return [account_id for account_id, _, _ in self.calls]

    async def withdraw(self, account_id: str, amount: Decimal, description: Optional[str]) -> TransactionOutcome:
        self.calls.append((account_id, amount, description))
        entry = self.script.get(account_id, TransactionStatus.COMPLETED)
        if isinstance(entry, Exception):
            raise entry
        return TransactionOutcome(
            transaction_id=f"txn-{account_id}",
            status=entry,
            created_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
        )


@pytest.fixture
def customer_gateway() -> FakeCustomerGateway:
    return FakeCustomerGateway({"cust-1": True, "cust-inactive": False})


@pytest.fixture
def account_gateway() -> FakeAccountGateway:
    return FakeAccountGateway(
        {"acc-1": True, "acc-2": True, "acc-3": True, "acc-inactive": False}
    )


@pytest.fixture
def transaction_gateway() -> ScriptedTransactionGateway:
    return ScriptedTransactionGateway()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """In-memory SQLite database shared across threads for the test client"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(
    db: Session,
    customer_gateway: FakeCustomerGateway,
    account_gateway: FakeAccountGateway,
    transaction_gateway: ScriptedTransactionGateway,
) -> TestClient:
    """Create FastAPI test client with test database and fake downstream services"""
    app = create_app(
        Gateways(
            customer=customer_gateway,
            account=account_gateway,
            transaction=transaction_gateway,
        )
    )

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
