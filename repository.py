"""Persistence operations for users and transactions on top of a SQLModel session."""
import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from errors import conflict
from models import Transaction, TransactionType, User
from utils import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class Repository:
    """Thin wrapper over one request-scoped ``Session``.

    Every transaction query here is scoped by ``user_id``; callers never see
    another user's rows.
    """

    def __init__(self, session: Session):
        self.session = session

    def save_and_refresh(self, instance):
        """Persist and refresh an instance in the current session."""
        self.session.add(instance)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning("integrity violation saving %s", type(instance).__name__)
            raise conflict("Conflicts with existing data")
        self.session.refresh(instance)
        return instance

    # Users

    def find_user_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self.session.exec(stmt).first()

    def create_user(self, name: str, email: str, hashed_password: str) -> User:
        user = User(name=name, email=email, hashed_password=hashed_password)
        return self.save_and_refresh(user)

    def update_user(self, user: User, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        return self.save_and_refresh(user)

    def delete_user(self, user: User) -> None:
        """Delete the user together with all of their transactions."""
        owned = self.session.exec(
            select(Transaction).where(Transaction.user_id == user.id)
        ).all()
        for transaction in owned:
            self.session.delete(transaction)
        self.session.delete(user)
        self.session.commit()

    def list_users(self) -> list[User]:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        return list(self.session.exec(stmt).all())

    # Transactions

    def create_transaction(
        self,
        user_id: int,
        description: str,
        amount: Decimal,
        tx_type: TransactionType,
        created_at: dt.datetime,
    ) -> Transaction:
        row = Transaction(
            user_id=user_id,
            description=description,
            amount=amount,
            type=TransactionType(tx_type).value,
            created_at=to_naive_utc(created_at),
        )
        return self.save_and_refresh(row)

    def find_transaction_by_id_and_owner(
        self, transaction_id: int, user_id: int
    ) -> Transaction | None:
        stmt = select(Transaction).where(
            Transaction.id == transaction_id,
            Transaction.user_id == user_id,
        )
        return self.session.exec(stmt).first()

    def _filtered(
        self,
        stmt,
        user_id: int,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
        tx_type: Optional[TransactionType] = None,
    ):
        stmt = stmt.where(Transaction.user_id == user_id)
        if start is not None:
            stmt = stmt.where(Transaction.created_at >= to_naive_utc(start))
        if end is not None:
            stmt = stmt.where(Transaction.created_at <= to_naive_utc(end))
        if tx_type is not None:
            stmt = stmt.where(Transaction.type == TransactionType(tx_type).value)
        return stmt

    def list_transactions_filtered(
        self,
        user_id: int,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
        tx_type: Optional[TransactionType] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Transaction], int]:
        """Return one page of the user's transactions (newest first) and the total match count."""
        rows_stmt = self._filtered(select(Transaction), user_id, start, end, tx_type)
        rows_stmt = (
            rows_stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_stmt = self._filtered(
            select(func.count()).select_from(Transaction), user_id, start, end, tx_type
        )
        rows = list(self.session.exec(rows_stmt).all())
        total = self.session.exec(count_stmt).one()
        return rows, int(total)

    def update_transaction(self, transaction: Transaction, changes: dict[str, Any]) -> Transaction:
        for field, value in changes.items():
            if field == "type":
                value = TransactionType(value).value
            setattr(transaction, field, value)
        transaction.updated_at = utcnow()
        return self.save_and_refresh(transaction)

    def delete_transaction(self, transaction: Transaction) -> None:
        self.session.delete(transaction)
        self.session.commit()

    def sum_amount_by_type(
        self,
        user_id: int,
        tx_type: TransactionType,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
    ) -> Decimal:
        """Sum of amounts for one type; zero when the user has none."""
        stmt = self._filtered(
            select(func.sum(Transaction.amount)), user_id, start, end, tx_type
        )
        total = self.session.exec(stmt).one()
        return Decimal(str(total)) if total is not None else Decimal("0")

    def list_transactions_for_user(
        self,
        user_id: int,
        start: Optional[dt.datetime] = None,
        end: Optional[dt.datetime] = None,
        tx_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        stmt = self._filtered(select(Transaction), user_id, start, end, tx_type)
        stmt = stmt.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        return list(self.session.exec(stmt).all())
