"""SQLAlchemy ORM models for debit cards"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Integer, Text, JSON, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class DebitCardRecord(Base):
    """Debit card with its ordered list of associated accounts"""

    __tablename__ = "debit_card"
    __table_args__ = (
        UniqueConstraint("customer_id", "primary_account_id", name="uq_debit_card_customer_primary"),
    )

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(Text, nullable=False, index=True)
    primary_account_id = Column(Text, nullable=False)
    associated_accounts = Column(JSON, nullable=False, default=list)
    card_number = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
    # Optimistic locking: UPDATEs match on the version that was read
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
