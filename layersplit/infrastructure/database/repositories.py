"""Data access layer for ledger entities"""

import uuid
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload
from layersplit.infrastructure.database.models import Bill, Debt, Group, GroupMember, Payment, User
from layersplit.domain.models import SplitKind
from layersplit.domain.money import Money


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.telegram_id == telegram_id).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def create(self, telegram_id: int, wallet_address: Optional[str] = None, username: Optional[str] = None) -> User:
        user = User(telegram_id=telegram_id, wallet_address=wallet_address, username=username)
        self.db.add(user)
        self.db.flush()
        return user


class GroupRepository:
    """Repository for chat groups and memberships"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_telegram_id(self, telegram_group_id: int) -> Optional[Group]:
        return self.db.query(Group).filter(Group.telegram_group_id == telegram_group_id).first()

    def create(self, telegram_group_id: int, name: str) -> Group:
        group = Group(telegram_group_id=telegram_group_id, name=name)
        self.db.add(group)
        self.db.flush()
        return group

    def get_membership(self, group_id: uuid.UUID, user_id: uuid.UUID) -> Optional[GroupMember]:
        return (
            self.db.query(GroupMember)
            .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
            .first()
        )

    def add_member(self, group_id: uuid.UUID, user_id: uuid.UUID, is_admin: bool) -> GroupMember:
        member = GroupMember(group_id=group_id, user_id=user_id, is_admin=is_admin)
        self.db.add(member)
        self.db.flush()
        return member

    def list_members(self, group_id: uuid.UUID) -> List[GroupMember]:
        return (
            self.db.query(GroupMember)
            .options(selectinload(GroupMember.user))
            .filter(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at)
            .all()
        )


class BillRepository:
    """Repository for bills and their debts"""

    def __init__(self, db: Session):
        self.db = db

    def create_bill(
        self,
        creator: User,
        title: str,
        description: str,
        total: Money,
        kind: SplitKind,
        debtors: Sequence[User],
        shares: Sequence[Money],
        group: Optional[Group] = None,
        chat_id: Optional[int] = None,
    ) -> Bill:
        """Persist a PENDING bill with one debt per debtor, in debtor order"""
        db_bill = Bill(
            group_id=group.id if group else None,
            creator_id=creator.id,
            chat_id=chat_id,
            title=title,
            description=description,
            total_amount=total.units,
            split_kind=kind.value,
        )
        self.db.add(db_bill)
        self.db.flush()  # Get ID without committing

        for position, (debtor, share) in enumerate(zip(debtors, shares)):
            self.db.add(
                Debt(
                    bill_id=db_bill.id,
                    position=position,
                    debtor_id=debtor.id,
                    creditor_id=creator.id,
                    principal_amount=share.units,
                    amount_paid=0,
                    created_at=db_bill.created_at,
                )
            )

        self.db.flush()
        self.db.refresh(db_bill)
        return db_bill

    def get_bill(self, bill_id: uuid.UUID) -> Optional[Bill]:
        return (
            self.db.query(Bill)
            .options(selectinload(Bill.debts).selectinload(Debt.debtor), selectinload(Bill.creator))
            .filter(Bill.id == bill_id)
            .first()
        )

    def lock_bill(self, bill_id: uuid.UUID) -> Optional[Bill]:
        """
        Load a bill and its debts under a row lock on the bill.

        The bill row is the serialization point for every mutation of its
        debt set. populate_existing() discards anything cached in the
        session so the debts reflect the state at lock time.
        """
        bill = self._lock_query(bill_id).first()
        if bill is None:
            return None
        (
            self.db.query(Debt)
            .filter(Debt.bill_id == bill_id)
            .populate_existing()
            .all()
        )
        return bill

    def _lock_query(self, bill_id: uuid.UUID):
        return (
            self.db.query(Bill)
            .filter(Bill.id == bill_id)
            .with_for_update()
            .populate_existing()
        )

    def get_bills_by_group(self, group_id: uuid.UUID, limit: int = 50) -> List[Bill]:
        return (
            self.db.query(Bill)
            .options(selectinload(Bill.debts), selectinload(Bill.creator))
            .filter(Bill.group_id == group_id)
            .order_by(Bill.created_at.desc())
            .limit(limit)
            .all()
        )

    def delete_bill(self, bill: Bill) -> None:
        self.db.delete(bill)
        self.db.flush()


class DebtRepository:
    """Repository for debts"""

    def __init__(self, db: Session):
        self.db = db

    def get_debt(self, debt_id: uuid.UUID) -> Optional[Debt]:
        return self.db.query(Debt).filter(Debt.id == debt_id).first()

    def get_open_debts_of(self, debtor_id: uuid.UUID) -> List[Debt]:
        """Unsettled debts owed by a user"""
        return (
            self.db.query(Debt)
            .options(selectinload(Debt.bill), selectinload(Debt.creditor))
            .filter(Debt.debtor_id == debtor_id, Debt.is_settled.is_(False))
            .order_by(Debt.created_at.desc())
            .all()
        )

    def get_open_receivables_of(self, creditor_id: uuid.UUID) -> List[Debt]:
        """Unsettled debts owed to a user"""
        return (
            self.db.query(Debt)
            .options(selectinload(Debt.bill), selectinload(Debt.debtor))
            .filter(Debt.creditor_id == creditor_id, Debt.is_settled.is_(False))
            .order_by(Debt.created_at.desc())
            .all()
        )


class PaymentRepository:
    """Repository for confirmed payments"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_transaction_id(self, transaction_id: str) -> Optional[Payment]:
        return self.db.query(Payment).filter(Payment.transaction_id == transaction_id).first()

    def record(self, debt: Debt, transaction_id: str, amount: Money) -> Payment:
        payment = Payment(debt_id=debt.id, transaction_id=transaction_id, amount=amount.units)
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_paid_by(self, debtor_id: uuid.UUID, limit: int = 50) -> List[Payment]:
        return (
            self.db.query(Payment)
            .join(Debt, Payment.debt_id == Debt.id)
            .options(selectinload(Payment.debt).selectinload(Debt.bill), selectinload(Payment.debt).selectinload(Debt.creditor))
            .filter(Debt.debtor_id == debtor_id)
            .order_by(Payment.confirmed_at.desc())
            .limit(limit)
            .all()
        )

    def get_received_by(self, creditor_id: uuid.UUID, limit: int = 50) -> List[Payment]:
        return (
            self.db.query(Payment)
            .join(Debt, Payment.debt_id == Debt.id)
            .options(selectinload(Payment.debt).selectinload(Debt.bill), selectinload(Payment.debt).selectinload(Debt.debtor))
            .filter(Debt.creditor_id == creditor_id)
            .order_by(Payment.confirmed_at.desc())
            .limit(limit)
            .all()
        )
