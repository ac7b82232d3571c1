"""Pydantic/SQLModel schemas for API payloads and responses."""
from typing import Optional
from decimal import Decimal
import datetime as dt

from sqlmodel import SQLModel, Field
from pydantic import BaseModel, ConfigDict, EmailStr, field_serializer, field_validator

from models import TransactionType
from utils import money_to_float, normalize_iso_datetime

NAME_MIN_LEN = 2
NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 100
DESCRIPTION_MAX_LEN = 255
MAX_PAGE_SIZE = 100


# User & Auth schemas

class StripNameMixin:
    @field_validator("name", mode="before", check_fields=False)
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserCreate(StripNameMixin, SQLModel):
    """Payload for registering or creating a user."""
    name: str = Field(min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UserLogin(SQLModel):
    """Payload for logging in."""
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UserUpdate(StripNameMixin, SQLModel):
    """Partial profile update; only the fields sent are changed."""
    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v


class UserRead(BaseModel):
    """Response model for a user; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: dt.datetime
    updated_at: dt.datetime


class UserList(BaseModel):
    users: list[UserRead]
    total: int


class AuthResponse(BaseModel):
    """Returned by register and login."""
    user: UserRead
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Claims carried by a verified bearer token."""
    user_id: int
    email: str


# Transaction schemas

class DescriptionDateMixin:
    """Shared validators for description trimming and created_at normalization."""
    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def strip_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("created_at", mode="before", check_fields=False)
    @classmethod
    def normalize_created_at(cls, v):
        if v is None:
            return None
        return normalize_iso_datetime(v)


class TransactionCreate(DescriptionDateMixin, SQLModel):
    """Payload for creating a transaction."""
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LEN)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    type: TransactionType
    created_at: dt.datetime


class TransactionUpdate(DescriptionDateMixin, SQLModel):
    """Partial update payload for transactions."""
    description: Optional[str] = Field(default=None, min_length=1, max_length=DESCRIPTION_MAX_LEN)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    type: Optional[TransactionType] = None

    @field_validator("description", "amount", "type", mode="before")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field may be omitted but not null")
        return v


class TransactionRead(BaseModel):
    """Response model for a transaction."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    description: str
    amount: Decimal
    type: TransactionType
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return money_to_float(amount)


class TransactionPage(BaseModel):
    items: list[TransactionRead]
    page: int
    limit: int
    total: int
    total_pages: int


# Report schemas. Money goes out as float, like the rest of the API.

class MonthlyAverageRead(BaseModel):
    month: str
    period: str
    average_value: float
    total_transactions: int

    @classmethod
    def from_average(cls, average) -> "MonthlyAverageRead":
        return cls(
            month=average.label,
            period=average.period,
            average_value=money_to_float(average.average_value),
            total_transactions=average.total_transactions,
        )


class SummaryRead(BaseModel):
    total_income: float
    total_expenses: float
    balance: float
    history: list[TransactionRead]
    monthly_averages: list[MonthlyAverageRead]

    @classmethod
    def from_summary(cls, summary) -> "SummaryRead":
        return cls(
            total_income=money_to_float(summary.total_income),
            total_expenses=money_to_float(summary.total_expenses),
            balance=money_to_float(summary.balance),
            history=[TransactionRead.model_validate(t) for t in summary.history],
            monthly_averages=[
                MonthlyAverageRead.from_average(a) for a in summary.monthly_averages
            ],
        )


class FinancialHealthRead(BaseModel):
    total_income: float
    total_expenses: float
    percentage: int
    status: str
    message: str

    @classmethod
    def from_health(cls, health) -> "FinancialHealthRead":
        return cls(
            total_income=money_to_float(health.total_income),
            total_expenses=money_to_float(health.total_expenses),
            percentage=health.percentage,
            status=health.status,
            message=health.message,
        )
