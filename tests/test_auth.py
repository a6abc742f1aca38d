"""
Tests for the login endpoint.

These tests verify:
  - Correct number and password return a token bound to that number
  - Wrong password and unknown number are rejected with the same error
  - Missing, ill-typed or out-of-range fields are rejected (422)
"""


class TestLogin:
    """Tests for POST /login."""

    async def test_login_success(self, client, token_service, bob):
        response = await client.post(
            "/login", json={"number": bob.number, "password": "pw2"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["number"] == bob.number
        assert data["tokenType"] == "bearer"
        claims = token_service.verify(data["token"])
        assert claims.subject_account_number == bob.number

    async def test_wrong_password(self, client, bob):
        response = await client.post(
            "/login", json={"number": bob.number, "password": "pw1"}
        )
        assert response.status_code == 401
        assert response.json()["error_type"] == "invalid_credentials"

    async def test_unknown_number_same_error(self, client, bob):
        """Same status and body as a wrong password (anti-enumeration)."""
        wrong_pw = await client.post(
            "/login", json={"number": bob.number, "password": "nope"}
        )
        unknown = await client.post(
            "/login", json={"number": 1000000001, "password": "nope"}
        )
        assert unknown.status_code == wrong_pw.status_code == 401
        assert unknown.json() == wrong_pw.json()

    async def test_missing_password(self, client, bob):
        response = await client.post("/login", json={"number": bob.number})
        assert response.status_code == 422

    async def test_non_numeric_number(self, client):
        response = await client.post(
            "/login", json={"number": "not-a-number", "password": "pw"}
        )
        assert response.status_code == 422

    async def test_number_out_of_range(self, client):
        response = await client.post(
            "/login", json={"number": 10**20, "password": "pw"}
        )
        assert response.status_code == 422
        assert response.json()["error_type"] == "validation_error"
