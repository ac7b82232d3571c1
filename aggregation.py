"""Summary, monthly-average and financial-health computations.

Everything here is a pure function over an in-memory list of transactions:
any objects exposing ``amount``, ``type`` and ``created_at`` will do. Nothing
touches the database, and none of these functions raise on well-formed input.
"""
import datetime as dt
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from models import TransactionType
from utils import filter_transactions, round_money, to_naive_utc

HISTORY_LIMIT = 50

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# (upper bound of expense/income ratio, percentage, status, message), checked in order
HEALTH_BANDS: tuple[tuple[Decimal, int, str, str], ...] = (
    (
        Decimal("0.5"),
        100,
        "excellent",
        "Excellent financial control! Your expenses are well below your income.",
    ),
    (
        Decimal("0.7"),
        80,
        "good",
        "Good financial health! You are spending in a controlled way.",
    ),
    (
        Decimal("0.9"),
        60,
        "warning",
        "Attention! Your expenses are high compared to your income.",
    ),
    (
        Decimal("1.0"),
        30,
        "warning",
        "Careful! You are spending almost all of your income.",
    ),
)
OVERSPENT_HEALTH = (10, "critical", "Critical alert! Your expenses exceed your income.")
NO_INCOME_HEALTH = (0, "critical", "No income recorded yet. Start by registering your earnings!")
NO_EXPENSES_HEALTH = (100, "excellent", "Excellent! You have income and no recorded expenses.")


@dataclass(frozen=True)
class MonthlyAverage:
    year: int
    month: int
    average_value: Decimal
    total_transactions: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.year, self.month)

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    @property
    def period(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class FinancialHealth:
    total_income: Decimal
    total_expenses: Decimal
    percentage: int
    status: str
    message: str


@dataclass
class Summary:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    history: list[Any] = field(default_factory=list)
    monthly_averages: list[MonthlyAverage] = field(default_factory=list)


def sum_by_type(transactions: Iterable[Any]) -> tuple[Decimal, Decimal]:
    """Return (income total, expense total); a missing type sums to zero."""
    income = Decimal("0")
    expenses = Decimal("0")
    for t in transactions:
        amount = Decimal(str(t.amount))
        if t.type == TransactionType.INCOME:
            income += amount
        elif t.type == TransactionType.EXPENSE:
            expenses += amount
    return income, expenses


def compute_monthly_averages(transactions: Iterable[Any]) -> list[MonthlyAverage]:
    """Average amount and count per calendar month of created_at, oldest month first."""
    buckets: dict[tuple[int, int], list[Decimal]] = defaultdict(list)
    for t in transactions:
        created_at = to_naive_utc(t.created_at)
        buckets[(created_at.year, created_at.month)].append(Decimal(str(t.amount)))

    averages = []
    for (year, month), amounts in sorted(buckets.items()):
        averages.append(
            MonthlyAverage(
                year=year,
                month=month,
                average_value=round_money(sum(amounts) / len(amounts)),
                total_transactions=len(amounts),
            )
        )
    return averages


def compute_summary(
    transactions: Iterable[Any],
    start_date: Optional[dt.datetime] = None,
    end_date: Optional[dt.datetime] = None,
) -> Summary:
    """Totals, balance, recent history and monthly averages within [start_date, end_date]."""
    selected = filter_transactions(transactions, date_from=start_date, date_to=end_date)
    income, expenses = sum_by_type(selected)

    history = sorted(selected, key=lambda t: to_naive_utc(t.created_at), reverse=True)[:HISTORY_LIMIT]

    return Summary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        history=history,
        monthly_averages=compute_monthly_averages(selected),
    )


def classify_financial_health(total_income: Any, total_expenses: Any) -> FinancialHealth:
    """Map all-time totals to a health band. Upper bounds are inclusive."""
    income = Decimal(str(total_income))
    expenses = Decimal(str(total_expenses))

    if income == 0:
        percentage, status, message = NO_INCOME_HEALTH
    elif expenses == 0:
        percentage, status, message = NO_EXPENSES_HEALTH
    else:
        ratio = expenses / income
        percentage, status, message = OVERSPENT_HEALTH
        for upper, band_percentage, band_status, band_message in HEALTH_BANDS:
            if ratio <= upper:
                percentage, status, message = band_percentage, band_status, band_message
                break

    return FinancialHealth(
        total_income=income,
        total_expenses=expenses,
        percentage=percentage,
        status=status,
        message=message,
    )


def compute_financial_health(transactions: Iterable[Any]) -> FinancialHealth:
    income, expenses = sum_by_type(transactions)
    return classify_financial_health(income, expenses)
