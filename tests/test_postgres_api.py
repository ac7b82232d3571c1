# tests/test_postgres_api.py
import os
import uuid

import pytest
from fastapi.testclient import TestClient

POSTGRES_URL = os.getenv("POSTGRES_TEST_URL")


@pytest.mark.integration
@pytest.mark.skipif(
    not POSTGRES_URL,
    reason="POSTGRES_TEST_URL not set, skipping Postgres API integration tests.",
)
def test_postgres_transaction_flow():
    """
    End-to-end flow via the HTTP API against the app's configured database
    (run with DATABASE_URL pointing at the same Postgres instance):

    - Register a throwaway user
    - Create an income and an expense
    - Confirm the summary reflects exactly those amounts
    """
    from main import app

    with TestClient(app) as client:
        email = f"pg_{uuid.uuid4().hex[:10]}@example.com"
        reg = client.post(
            "/auth/register",
            json={"name": "PG User", "email": email, "password": "PgPass123"},
        )
        assert reg.status_code == 201
        headers = {"Authorization": f"Bearer {reg.json()['access_token']}"}

        for description, amount, type_ in (("PG Salary", 123.45, "income"), ("PG Expense", 45.67, "expense")):
            r = client.post(
                "/transactions",
                headers=headers,
                json={
                    "description": description,
                    "amount": amount,
                    "type": type_,
                    "created_at": "2025-01-01",
                },
            )
            assert r.status_code == 201

        summary = client.get("/transactions/summary", headers=headers).json()
        assert summary["total_income"] == 123.45
        assert summary["total_expenses"] == 45.67
        assert summary["balance"] == 77.78
