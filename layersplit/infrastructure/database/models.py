"""SQLAlchemy ORM models for the off-chain ledger mirror"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Integer, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship

from layersplit.domain.lifecycle import derive_status
from layersplit.domain.models import LedgerStatus, SplitKind
from layersplit.domain.money import Money
from layersplit.domain.splits import unassigned_remainder
from layersplit.utils.date_utils import utc_now

Base = declarative_base()


class User(Base):
    """Chat identity linked (eventually) to a wallet address"""

    __tablename__ = "ls_user"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    telegram_id = Column(BigInteger, nullable=False, unique=True, index=True)
    wallet_address = Column(String(66), nullable=True)
    username = Column(Text, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    memberships = relationship("GroupMember", back_populates="user")

    @property
    def handle(self) -> str:
        return f"@{self.username}" if self.username else str(self.telegram_id)


class Group(Base):
    """Chat group that bills can be attached to"""

    __tablename__ = "ls_group"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    telegram_group_id = Column(BigInteger, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    """Membership of a user in a group"""

    __tablename__ = "ls_group_member"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("ls_group.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("ls_user.id"), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="memberships")


class Bill(Base):
    """One split event; owns its debts"""

    __tablename__ = "ls_bill"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    group_id = Column(UUID(as_uuid=True), ForeignKey("ls_group.id"), nullable=True, index=True)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("ls_user.id"), nullable=False, index=True)
    chat_id = Column(BigInteger, nullable=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    total_amount = Column(BigInteger, nullable=False)
    split_kind = Column(String(16), nullable=False)
    is_settled = Column(Boolean, nullable=False, default=False)
    external_object_id = Column(Text, nullable=True, unique=True)
    transaction_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("Group")
    creator = relationship("User")
    debts = relationship(
        "Debt",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="Debt.position",
    )

    @property
    def status(self) -> LedgerStatus:
        return derive_status(self.external_object_id, self.is_settled)

    @property
    def kind(self) -> SplitKind:
        return SplitKind(self.split_kind)

    @property
    def total(self) -> Money:
        return Money(self.total_amount)

    @property
    def unassigned_remainder(self) -> Money:
        return unassigned_remainder(self.total, [debt.principal for debt in self.debts])


class Debt(Base):
    """One debtor's obligation within a bill"""

    __tablename__ = "ls_debt"
    __table_args__ = (UniqueConstraint("bill_id", "position", name="uq_debt_position"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bill_id = Column(UUID(as_uuid=True), ForeignKey("ls_bill.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    debtor_id = Column(UUID(as_uuid=True), ForeignKey("ls_user.id"), nullable=False, index=True)
    creditor_id = Column(UUID(as_uuid=True), ForeignKey("ls_user.id"), nullable=False, index=True)
    principal_amount = Column(BigInteger, nullable=False)
    amount_paid = Column(BigInteger, nullable=False, default=0)
    is_settled = Column(Boolean, nullable=False, default=False)
    external_object_id = Column(Text, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    bill = relationship("Bill", back_populates="debts")
    debtor = relationship("User", foreign_keys=[debtor_id])
    creditor = relationship("User", foreign_keys=[creditor_id])
    payments = relationship("Payment", back_populates="debt", cascade="all, delete-orphan")

    @property
    def status(self) -> LedgerStatus:
        # Debts are confirmed by their bill's creation transaction
        return derive_status(self.bill.external_object_id, self.is_settled)

    @property
    def principal(self) -> Money:
        return Money(self.principal_amount)

    @property
    def paid(self) -> Money:
        return Money(self.amount_paid or 0)


class Payment(Base):
    """A confirmed on-chain payment against a debt"""

    __tablename__ = "ls_payment"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    debt_id = Column(UUID(as_uuid=True), ForeignKey("ls_debt.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id = Column(Text, nullable=False, unique=True)
    amount = Column(BigInteger, nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    debt = relationship("Debt", back_populates="payments")
