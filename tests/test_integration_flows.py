"""End-to-end flows through the public HTTP API only."""


def test_register_record_and_report_flow(client):
    # Arrange: register returns a usable token right away
    reg = client.post(
        "/auth/register",
        json={"name": "Flow User", "email": "flow@example.com", "password": "FlowPass1"},
    )
    assert reg.status_code == 201
    headers = {"Authorization": f"Bearer {reg.json()['access_token']}"}

    entries = [
        ("Salary", 1000.50, "income", "2025-01-01"),
        ("Freelance", 200.25, "income", "2025-01-05"),
        ("Groceries", 100.10, "expense", "2025-01-02"),
        ("Taxi", 50.00, "expense", "2025-02-03"),
    ]
    for description, amount, type_, date in entries:
        resp = client.post(
            "/transactions",
            headers=headers,
            json={"description": description, "amount": amount, "type": type_, "created_at": date},
        )
        assert resp.status_code == 201

    # Act
    summary = client.get("/transactions/summary", headers=headers).json()
    health = client.get("/transactions/financial-health", headers=headers).json()

    # Assert: total_income = 1200.75, total_expenses = 150.10, balance = 1050.65
    assert summary["total_income"] == 1200.75
    assert summary["total_expenses"] == 150.10
    assert summary["balance"] == 1050.65
    assert [m["period"] for m in summary["monthly_averages"]] == ["2025-01", "2025-02"]
    assert summary["monthly_averages"][0]["total_transactions"] == 3

    # 150.10 / 1200.75 is well under half
    assert health["status"] == "excellent"
    assert health["percentage"] == 100


def test_spending_past_income_turns_health_critical(client):
    reg = client.post(
        "/auth/register",
        json={"name": "Spender", "email": "spender@example.com", "password": "Spend123"},
    )
    headers = {"Authorization": f"Bearer {reg.json()['access_token']}"}

    income = client.post(
        "/transactions",
        headers=headers,
        json={"description": "Pay", "amount": 1000, "type": "income", "created_at": "2025-05-01"},
    ).json()
    client.post(
        "/transactions",
        headers=headers,
        json={"description": "Rent", "amount": 1000, "type": "expense", "created_at": "2025-05-02"},
    )
    at_limit = client.get("/transactions/financial-health", headers=headers).json()
    assert (at_limit["percentage"], at_limit["status"]) == (30, "warning")

    # lowering income by a cent pushes the ratio over 1.0
    client.put(f"/transactions/{income['id']}", headers=headers, json={"amount": 999.99})
    over = client.get("/transactions/financial-health", headers=headers).json()
    assert (over["percentage"], over["status"]) == (10, "critical")
