"""API tests for transaction CRUD endpoints."""

from uuid import uuid4

import pytest


SAMPLE_TRANSACTIONS = [
    {"amount": 15.50, "type": "expense", "transaction_date": "2025-12-23",
     "description": "Coffee", "category": "Food"},
    {"amount": 50.00, "type": "expense", "transaction_date": "2025-12-22",
     "description": "Groceries", "category": "Food"},
    {"amount": 25.00, "type": "expense", "transaction_date": "2025-12-21",
     "description": "Taxi to airport", "category": "Transport"},
    {"amount": 1000.00, "type": "income", "transaction_date": "2025-12-20",
     "description": "Salary"},
    {"amount": 8.00, "type": "expense", "transaction_date": "2025-11-15",
     "description": "Bus fare", "category": "Transport"},
]


@pytest.fixture
def auth(registered):
    """Authorization headers for the registered user."""
    return registered["headers"]


@pytest.fixture
def seeded(bare_client, auth):
    """Create the sample transactions for the registered user. Returns their IDs."""
    ids = []
    for tx in SAMPLE_TRANSACTIONS:
        response = bare_client.post("/api/v1/transactions", json=tx, headers=auth)
        assert response.status_code == 201
        ids.append(response.get_json()["id"])
    return ids


@pytest.fixture
def other_auth(bare_client):
    """Authorization headers for a second user."""
    response = bare_client.post("/auth/register", json={"email": "bob@example.com", "password": "pw"})
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}


class TestAuthentication:
    """All /api/v1 routes sit behind the access-token gate."""

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/transactions"),
        ("post", "/api/v1/transactions"),
        ("get", "/api/v1/transactions/categories"),
        ("get", f"/api/v1/transactions/{uuid4()}"),
        ("delete", f"/api/v1/transactions/{uuid4()}"),
    ])
    def test_requires_access_token(self, bare_client, method, path):
        response = getattr(bare_client, method)(path)

        assert response.status_code == 401
        assert response.get_json()["error"]["type"] == "Unauthorized"

    def test_refresh_token_is_not_an_access_token(self, bare_client, registered):
        token = registered["body"]["refresh_token"]
        response = bare_client.get("/api/v1/transactions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestCreateTransaction:
    """Tests for POST /api/v1/transactions"""

    def test_create_transaction_valid(self, bare_client, auth):
        response = bare_client.post(
            "/api/v1/transactions",
            json={
                "amount": 20.00,
                "type": "expense",
                "currency": "EUR",
                "transaction_date": "2025-12-23",
                "description": "Lunch at cafe",
                "category": "Food",
            },
            headers=auth
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["amount"] == 20.00
        assert data["type"] == "expense"
        assert data["currency"] == "EUR"
        assert data["transaction_date"] == "2025-12-23"
        assert data["description"] == "Lunch at cafe"
        assert data["category"] == "Food"
        assert "id" in data
        assert "created_at" in data
        assert "updated_at" in data

    def test_create_transaction_minimal(self, bare_client, auth):
        response = bare_client.post(
            "/api/v1/transactions",
            json={"amount": 30.00, "type": "income", "transaction_date": "2025-12-23"},
            headers=auth
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data["currency"] == "USD"  # Default value
        assert data["description"] == ""
        assert data["category"] is None

    @pytest.mark.parametrize("body", [
        {"amount": "not_a_number", "type": "expense", "transaction_date": "2025-12-23"},
        {"amount": -5, "type": "expense", "transaction_date": "2025-12-23"},
        {"amount": 5, "type": "transfer", "transaction_date": "2025-12-23"},
        {"amount": 5, "type": "expense", "transaction_date": "23-12-2025"},
        {"amount": 5, "type": "expense"},
    ])
    def test_create_transaction_invalid(self, bare_client, auth, body):
        response = bare_client.post("/api/v1/transactions", json=body, headers=auth)

        assert response.status_code == 400
        assert response.get_json()["error"]["type"] == "ValidationError"


class TestGetTransaction:
    """Tests for GET /api/v1/transactions/{id}"""

    def test_get_transaction_found(self, bare_client, auth, seeded):
        response = bare_client.get(f"/api/v1/transactions/{seeded[0]}", headers=auth)

        assert response.status_code == 200
        assert response.get_json()["id"] == seeded[0]

    def test_get_transaction_not_found(self, bare_client, auth):
        response = bare_client.get(f"/api/v1/transactions/{uuid4()}", headers=auth)

        assert response.status_code == 404
        assert response.get_json()["error"]["type"] == "ResourceNotFound"


class TestListTransactions:
    """Tests for GET /api/v1/transactions"""

    def test_list_default_newest_first(self, bare_client, auth, seeded):
        response = bare_client.get("/api/v1/transactions", headers=auth)

        assert response.status_code == 200
        data = response.get_json()
        assert len(data) == 5
        dates = [tx["transaction_date"] for tx in data]
        assert dates == sorted(dates, reverse=True)

    def test_list_with_date_filter(self, bare_client, auth, seeded):
        response = bare_client.get(
            "/api/v1/transactions?start_date=2025-12-21&end_date=2025-12-23",
            headers=auth
        )
        assert len(response.get_json()) == 3

    def test_list_with_type_filter(self, bare_client, auth, seeded):
        response = bare_client.get("/api/v1/transactions?type=income", headers=auth)

        data = response.get_json()
        assert len(data) == 1
        assert data[0]["description"] == "Salary"

    def test_list_with_category_filter(self, bare_client, auth, seeded):
        response = bare_client.get("/api/v1/transactions?category=Transport", headers=auth)

        data = response.get_json()
        assert len(data) == 2
        assert all(tx["category"] == "Transport" for tx in data)

    def test_list_with_limit_offset(self, bare_client, auth, seeded):
        page1 = bare_client.get("/api/v1/transactions?limit=2&offset=0", headers=auth).get_json()
        page2 = bare_client.get("/api/v1/transactions?limit=2&offset=2", headers=auth).get_json()

        assert len(page1) == 2
        assert len(page2) == 2
        assert {tx["id"] for tx in page1}.isdisjoint({tx["id"] for tx in page2})

    @pytest.mark.parametrize("query", [
        "limit=abc",
        "limit=0",
        "offset=-1",
        "type=transfer",
        "start_date=yesterday",
    ])
    def test_list_bad_query(self, bare_client, auth, query):
        response = bare_client.get(f"/api/v1/transactions?{query}", headers=auth)

        assert response.status_code == 400
        assert response.get_json()["error"]["type"] == "ValidationError"


class TestUpdateTransaction:
    """Tests for PUT /api/v1/transactions/{id}"""

    def test_update_transaction_partial(self, bare_client, auth, seeded):
        original = bare_client.get(f"/api/v1/transactions/{seeded[0]}", headers=auth).get_json()

        response = bare_client.put(
            f"/api/v1/transactions/{seeded[0]}",
            json={"amount": 99.99, "category": "Treats"},
            headers=auth
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["amount"] == 99.99
        assert data["category"] == "Treats"
        assert data["description"] == original["description"]
        assert data["type"] == original["type"]

    def test_update_transaction_not_found(self, bare_client, auth):
        response = bare_client.put(
            f"/api/v1/transactions/{uuid4()}",
            json={"amount": 50.00},
            headers=auth
        )
        assert response.status_code == 404

    def test_update_transaction_invalid_data(self, bare_client, auth, seeded):
        response = bare_client.put(
            f"/api/v1/transactions/{seeded[0]}",
            json={"amount": "not_a_number"},
            headers=auth
        )
        assert response.status_code == 400


class TestDeleteTransaction:
    """Tests for DELETE /api/v1/transactions/{id}"""

    def test_delete_transaction(self, bare_client, auth, seeded):
        response = bare_client.delete(f"/api/v1/transactions/{seeded[0]}", headers=auth)

        assert response.status_code == 204
        assert response.data == b""
        assert bare_client.get(f"/api/v1/transactions/{seeded[0]}", headers=auth).status_code == 404

    def test_delete_twice(self, bare_client, auth, seeded):
        bare_client.delete(f"/api/v1/transactions/{seeded[0]}", headers=auth)
        response = bare_client.delete(f"/api/v1/transactions/{seeded[0]}", headers=auth)
        assert response.status_code == 404


class TestCategories:
    """Tests for GET /api/v1/transactions/categories"""

    def test_list_categories(self, bare_client, auth, seeded):
        response = bare_client.get("/api/v1/transactions/categories", headers=auth)

        assert response.status_code == 200
        assert response.get_json() == ["Food", "Transport"]


class TestOwnership:
    """Users never see or modify each other's transactions."""

    def test_list_is_per_user(self, bare_client, seeded, other_auth):
        response = bare_client.get("/api/v1/transactions", headers=other_auth)
        assert response.get_json() == []

    def test_other_user_gets_404(self, bare_client, auth, seeded, other_auth):
        path = f"/api/v1/transactions/{seeded[0]}"

        assert bare_client.get(path, headers=other_auth).status_code == 404
        assert bare_client.put(path, json={"amount": 1}, headers=other_auth).status_code == 404
        assert bare_client.delete(path, headers=other_auth).status_code == 404
        assert bare_client.get(path, headers=auth).status_code == 200
