from decimal import Decimal
import datetime as dt

import pytest

from aggregation import classify_financial_health, compute_financial_health
from models import Transaction


def make_tx(amount, type_):
    return Transaction(
        id=None,
        user_id=1,
        description="X",
        amount=Decimal(str(amount)),
        type=type_,
        created_at=dt.datetime(2025, 1, 1),
    )


def test_income_only_is_excellent():
    health = compute_financial_health([make_tx(1000, "income")])
    assert health.total_income == Decimal("1000")
    assert health.total_expenses == 0
    assert (health.percentage, health.status) == (100, "excellent")


def test_sixty_percent_spent_is_good():
    health = compute_financial_health([make_tx(1000, "income"), make_tx(600, "expense")])
    assert (health.percentage, health.status) == (80, "good")


def test_expenses_without_income_is_critical():
    health = compute_financial_health([make_tx(50, "expense")])
    assert health.total_income == 0
    assert (health.percentage, health.status) == (0, "critical")


def test_empty_list_is_critical_with_zero_totals():
    health = compute_financial_health([])
    assert health.total_income == 0
    assert health.total_expenses == 0
    assert (health.percentage, health.status) == (0, "critical")
    assert health.message


@pytest.mark.parametrize(
    "expenses, expected",
    [
        ("5000", (100, "excellent")),
        ("5000.01", (80, "good")),
        ("7000", (80, "good")),
        ("7000.01", (60, "warning")),
        ("9000", (60, "warning")),
        ("9000.01", (30, "warning")),
        ("10000", (30, "warning")),
        ("10001", (10, "critical")),
        ("25000", (10, "critical")),
    ],
)
def test_band_boundaries_are_inclusive_upper(expenses, expected):
    health = classify_financial_health(Decimal("10000"), Decimal(expenses))
    assert (health.percentage, health.status) == expected


def test_each_band_has_its_own_message():
    messages = {
        classify_financial_health(Decimal("100"), Decimal(e)).message
        for e in ("0", "40", "60", "80", "95", "150")
    }
    messages.add(classify_financial_health(0, 0).message)
    assert len(messages) == 7


def test_health_depends_only_on_totals():
    many_small = [make_tx(100, "income") for _ in range(10)] + [
        make_tx(70, "expense") for _ in range(10)
    ]
    one_big = [make_tx(1000, "income"), make_tx(700, "expense")]
    assert compute_financial_health(many_small) == compute_financial_health(one_big)
