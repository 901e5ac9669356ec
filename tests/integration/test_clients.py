"""Integration tests for clients, guarantors and balance adjustments"""

from fastapi.testclient import TestClient
from remit_ledger.infrastructure.database.models import AuditLog


def test_create_client_with_opening_balance(client: TestClient, db, cashier_headers):
    response = client.post(
        "/api/clients",
        json={"full_name": "Hana Ali", "phone": "+252 61 000", "balance_cents": 25000},
        headers=cashier_headers,
    )

    assert response.status_code == 201
    created = response.json()
    assert created["balance_cents"] == 25000

    ledger = client.get(f"/api/clients/{created['id']}/ledger", headers=cashier_headers).json()
    assert len(ledger) == 1
    assert ledger[0]["kind"] == "opening"
    assert ledger[0]["delta_cents"] == 25000
    assert ledger[0]["balance_after_cents"] == 25000

    assert db.query(AuditLog).filter(AuditLog.action == "create_client").count() == 1


def test_create_client_duplicate_name(client: TestClient, cashier_headers, make_client):
    make_client("Hana Ali")

    response = client.post("/api/clients", json={"full_name": "Hana Ali"}, headers=cashier_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Client with this full name already exists"


def test_create_client_unknown_guarantor(client: TestClient, cashier_headers):
    response = client.post(
        "/api/clients",
        json={"full_name": "Ibrahim", "guarantor_id": "00000000-0000-0000-0000-000000000000"},
        headers=cashier_headers,
    )

    assert response.status_code == 404


def test_update_client_unknown_guarantor(client: TestClient, cashier_headers, make_client):
    pia = make_client("Pia")

    response = client.put(
        f"/api/clients/{pia.id}",
        json={"guarantor_id": "00000000-0000-0000-0000-000000000000"},
        headers=cashier_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Guarantor not found"
    assert client.get(f"/api/clients/{pia.id}", headers=cashier_headers).json()["guarantor_id"] is None


def test_client_with_guarantor(client: TestClient, cashier_headers):
    guarantor = client.post(
        "/api/guarantors",
        json={"full_name": "Uncle Omar", "national_id": "SO-123"},
        headers=cashier_headers,
    )
    assert guarantor.status_code == 201
    guarantor_id = guarantor.json()["id"]

    created = client.post(
        "/api/clients",
        json={"full_name": "Jamal", "guarantor_id": guarantor_id},
        headers=cashier_headers,
    ).json()
    assert created["guarantor_id"] == guarantor_id

    listed = client.get("/api/guarantors", headers=cashier_headers).json()
    assert [g["full_name"] for g in listed] == ["Uncle Omar"]


def test_manager_cannot_create_guarantor(client: TestClient, make_headers):
    response = client.post("/api/guarantors", json={"full_name": "X"}, headers=make_headers("manager"))
    assert response.status_code == 403


def test_list_and_get_clients(client: TestClient, cashier_headers, make_client):
    make_client("Zara")
    amal = make_client("Amal", 500)

    listed = client.get("/api/clients", headers=cashier_headers).json()
    assert [c["full_name"] for c in listed] == ["Amal", "Zara"]

    response = client.get(f"/api/clients/{amal.id}", headers=cashier_headers)
    assert response.status_code == 200
    assert response.json()["balance_cents"] == 500

    assert client.get("/api/clients/00000000-0000-0000-0000-000000000000", headers=cashier_headers).status_code == 404

    response = client.get("/api/clients/nope", headers=cashier_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid client ID format"


def test_update_client_profile_leaves_balance(client: TestClient, cashier_headers, make_client, balance_of):
    kamal = make_client("Kamal", 1500)

    response = client.put(
        f"/api/clients/{kamal.id}",
        json={"phone": "555-0101", "education_level": "secondary"},
        headers=cashier_headers,
    )

    assert response.status_code == 200
    assert response.json()["phone"] == "555-0101"
    assert balance_of(kamal.id) == 1500


def test_update_client_rename_to_existing(client: TestClient, cashier_headers, make_client):
    make_client("Layla")
    maryan = make_client("Maryan")

    response = client.put(f"/api/clients/{maryan.id}", json={"full_name": "Layla"}, headers=cashier_headers)

    assert response.status_code == 400


def test_balance_override_books_adjustment(client: TestClient, db, admin_headers, make_client, balance_of):
    nuur = make_client("Nuur", 1000)

    response = client.put(f"/api/clients/balance/{nuur.id}", json={"balance_cents": 4000}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["balance_cents"] == 4000
    assert balance_of(nuur.id) == 4000

    ledger = client.get(f"/api/clients/{nuur.id}/ledger", headers=admin_headers).json()
    adjustment = [e for e in ledger if e["kind"] == "adjustment"]
    assert len(adjustment) == 1
    assert adjustment[0]["delta_cents"] == 3000
    assert adjustment[0]["balance_after_cents"] == 4000

    audit = db.query(AuditLog).filter(AuditLog.action == "update_client_balance").one()
    assert audit.details == {"balance_cents": 4000, "delta_cents": 3000}


def test_balance_override_forbidden_for_cashier(client: TestClient, cashier_headers, make_client, balance_of):
    omar = make_client("Omar", 1000)

    response = client.put(f"/api/clients/balance/{omar.id}", json={"balance_cents": 0}, headers=cashier_headers)

    assert response.status_code == 403
    assert balance_of(omar.id) == 1000


def test_balance_override_unknown_client(client: TestClient, admin_headers):
    response = client.put(
        "/api/clients/balance/00000000-0000-0000-0000-000000000000",
        json={"balance_cents": 10},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_update_client_rejects_null_name(client: TestClient, cashier_headers, make_client):
    quinn = make_client("Quinn")

    response = client.put(f"/api/clients/{quinn.id}", json={"full_name": None}, headers=cashier_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid input"
    assert client.get(f"/api/clients/{quinn.id}", headers=cashier_headers).json()["full_name"] == "Quinn"


def test_update_client_can_clear_optional_fields(client: TestClient, cashier_headers):
    created = client.post(
        "/api/clients",
        json={"full_name": "Rahma", "phone": "555-0199"},
        headers=cashier_headers,
    ).json()

    response = client.put(f"/api/clients/{created['id']}", json={"phone": None}, headers=cashier_headers)

    assert response.status_code == 200
    assert response.json()["phone"] is None


def test_balance_fields_are_bounded(client: TestClient, cashier_headers, admin_headers, make_client):
    response = client.post("/api/clients", json={"full_name": "Sahal", "balance_cents": 10**20}, headers=cashier_headers)
    assert response.status_code == 400

    tariq = make_client("Tariq")
    response = client.put(f"/api/clients/balance/{tariq.id}", json={"balance_cents": 10**20}, headers=admin_headers)
    assert response.status_code == 400
