"""Data access layer for debit cards"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from debit_gateway.domain.exceptions import (
    BusinessRuleViolation,
    ConcurrentUpdateError,
    DebitCardNotFoundError,
)
from debit_gateway.domain.interfaces import DebitCardStore
from debit_gateway.domain.models import DebitCard
from debit_gateway.infrastructure.database.models import DebitCardRecord


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on round trip
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_domain(record: DebitCardRecord) -> DebitCard:
    return DebitCard(
        id=record.id,
        customer_id=record.customer_id,
        primary_account_id=record.primary_account_id,
        associated_accounts=list(record.associated_accounts or []),
        active=record.active,
        card_number=record.card_number,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        version=record.version,
    )


class DebitCardRepository(DebitCardStore):
    """Repository for debit cards"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, card: DebitCard) -> DebitCard:
        """Insert a new card or update an existing one (flush only, caller commits)"""
        if card.version == 0:
            return self._insert(card)
        return self._update(card)

    def _insert(self, card: DebitCard) -> DebitCard:
        record = DebitCardRecord(
            customer_id=card.customer_id,
            primary_account_id=card.primary_account_id,
            associated_accounts=list(card.associated_accounts),
            card_number=card.card_number,
            active=card.active,
            created_at=card.created_at,
            updated_at=card.updated_at,
        )
        if card.id is not None:
            record.id = card.id
        self.db.add(record)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise BusinessRuleViolation("Customer already has a debit card for this account") from e
        return to_domain(record)

    def _update(self, card: DebitCard) -> DebitCard:
        record = self.db.get(DebitCardRecord, card.id)
        if record is None:
            raise DebitCardNotFoundError(f"Debit card not found: {card.id}")
        if record.version != card.version:
            raise ConcurrentUpdateError(f"Debit card {card.id} was modified concurrently")

        record.associated_accounts = list(card.associated_accounts)
        record.active = card.active
        record.card_number = card.card_number
        record.updated_at = card.updated_at
        try:
            self.db.flush()
        except StaleDataError as e:
            raise ConcurrentUpdateError(f"Debit card {card.id} was modified concurrently") from e
        return to_domain(record)

    def find_by_id(self, card_id: str) -> Optional[DebitCard]:
        record = self.db.get(DebitCardRecord, card_id)
        return to_domain(record) if record else None

    def find_by_customer_and_primary_account(
        self, customer_id: str, account_id: str
    ) -> Optional[DebitCard]:
        record = (
            self.db.query(DebitCardRecord)
            .filter(
                DebitCardRecord.customer_id == customer_id,
                DebitCardRecord.primary_account_id == account_id,
            )
            .first()
        )
        return to_domain(record) if record else None

    def find_active_by_customer(self, customer_id: str) -> Optional[DebitCard]:
        """Oldest active card for the customer"""
        record = (
            self.db.query(DebitCardRecord)
            .filter(DebitCardRecord.customer_id == customer_id, DebitCardRecord.active.is_(True))
            .order_by(DebitCardRecord.created_at.asc())
            .first()
        )
        return to_domain(record) if record else None
