"""Integration tests for withdrawals"""

from fastapi.testclient import TestClient
from remit_ledger.infrastructure.database.models import AuditLog, LedgerEntry, Withdraw


def test_withdraw_deducts_full_amount(client: TestClient, db, cashier_headers, make_client, set_tax_rate, balance_of):
    """Rate 0.10, $200 from $500: balance $300, client is handed $180"""
    set_tax_rate(0.10)
    carol = make_client("Carol", 50000)

    response = client.post(
        "/api/withdraw",
        json={"client_id": str(carol.id), "amount_cents": 20000, "notes": "school fees"},
        headers=cashier_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["tax_amount_cents"] == 2000
    assert data["total_received_cents"] == 18000
    assert data["client_receives_cents"] == 18000
    assert data["client_balance_after_cents"] == 30000
    assert data["status"] == "completed"
    assert balance_of(carol.id) == 30000

    audit = db.query(AuditLog).filter(AuditLog.action == "withdraw_money").one()
    assert audit.details["client"] == "Carol"
    assert audit.details["client_balance_after_cents"] == 30000

    entry = db.query(LedgerEntry).filter(LedgerEntry.kind == "withdraw").one()
    assert entry.delta_cents == -20000
    assert str(entry.reference_id) == data["id"]


def test_withdraw_insufficient_balance(client: TestClient, db, cashier_headers, make_client, balance_of):
    dave = make_client("Dave", 1000)

    response = client.post(
        "/api/withdraw",
        json={"client_id": str(dave.id), "amount_cents": 5000},
        headers=cashier_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient balance. Required: $50.00, Available: $10.00"
    assert balance_of(dave.id) == 1000
    assert db.query(Withdraw).count() == 0


def test_withdraw_whole_balance(client: TestClient, cashier_headers, make_client, balance_of):
    erin = make_client("Erin", 700)

    response = client.post(
        "/api/withdraw",
        json={"client_id": str(erin.id), "amount_cents": 700},
        headers=cashier_headers,
    )

    assert response.status_code == 201
    assert balance_of(erin.id) == 0


def test_withdraw_unknown_client(client: TestClient, cashier_headers):
    response = client.post(
        "/api/withdraw",
        json={"client_id": "00000000-0000-0000-0000-000000000000", "amount_cents": 100},
        headers=cashier_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Client not found"


def test_withdraw_rejects_out_of_range_amount(client: TestClient, cashier_headers, make_client, balance_of):
    frank = make_client("Frank", 1000)

    for amount in (0, 10**20):
        response = client.post(
            "/api/withdraw",
            json={"client_id": str(frank.id), "amount_cents": amount},
            headers=cashier_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid input"

    assert balance_of(frank.id) == 1000


def test_withdraw_list_search_and_stats(client: TestClient, cashier_headers, make_client, set_tax_rate):
    set_tax_rate(0.10)
    carol = make_client("Carol", 50000)
    dave = make_client("Dave", 50000)
    client.post(
        "/api/withdraw",
        json={"client_id": str(carol.id), "amount_cents": 10000, "notes": "rent"},
        headers=cashier_headers,
    )
    client.post(
        "/api/withdraw",
        json={"client_id": str(dave.id), "amount_cents": 5000},
        headers=cashier_headers,
    )

    everything = client.get("/api/withdraw", headers=cashier_headers).json()
    assert len(everything) == 2

    by_name = client.get("/api/withdraw", params={"search": "dav"}, headers=cashier_headers).json()
    assert [w["client_id"] for w in by_name] == [str(dave.id)]

    by_notes = client.get("/api/withdraw", params={"search": "RENT"}, headers=cashier_headers).json()
    assert [w["client_id"] for w in by_notes] == [str(carol.id)]

    stats = client.get("/api/withdraw/stats", headers=cashier_headers).json()
    assert stats == {
        "total_amount_cents": 15000,
        "total_tax_cents": 1500,
        "total_received_cents": 13500,
        "count": 2,
    }


def test_withdraw_stats_empty(client: TestClient, cashier_headers):
    stats = client.get("/api/withdraw/stats", headers=cashier_headers).json()
    assert stats["count"] == 0
    assert stats["total_amount_cents"] == 0


def test_get_withdraw(client: TestClient, cashier_headers, make_client):
    gina = make_client("Gina", 1000)
    created = client.post(
        "/api/withdraw",
        json={"client_id": str(gina.id), "amount_cents": 100},
        headers=cashier_headers,
    ).json()

    response = client.get(f"/api/withdraw/{created['id']}", headers=cashier_headers)
    assert response.status_code == 200
    assert response.json()["amount_cents"] == 100

    assert client.get("/api/withdraw/00000000-0000-0000-0000-000000000000", headers=cashier_headers).status_code == 404
    assert client.get("/api/withdraw/bad-id", headers=cashier_headers).status_code == 400
