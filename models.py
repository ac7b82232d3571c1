from enum import Enum
from typing import Optional
from decimal import Decimal
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from utils import utcnow


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


# Each class = one table.
# Timestamps are stored as naive UTC; sa_type pins the plain DateTime column.
class User(SQLModel, table=True):
    """Registered account. Email is the login identifier and must be unique."""
    # ids are never handed out twice, even after a delete
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(index=True, unique=True, max_length=255)
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class Transaction(SQLModel, table=True):
    """A single income or expense owned by one user.

    - 'type' = either 'income' or 'expense'
    - 'created_at' = the date the caller says the money moved, not the insert time
    """
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    description: str = Field(max_length=255)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)  # always positive
    type: str = Field(index=True, max_length=7)  # a TransactionType value
    created_at: datetime = Field(index=True, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
