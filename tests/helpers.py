"""
Shared helpers for driving the API from tests.

Kept out of conftest.py so test modules can import them directly.
"""

from dataclasses import dataclass

from httpx import AsyncClient


TEST_SECRET_KEY = "test-secret-key-not-for-production"


@dataclass
class Holder:
    """A registered account as seen from a test: identity plus auth header."""
    id: int
    number: int
    password: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


async def register(client: AsyncClient, first: str, last: str, password: str) -> dict:
    response = await client.post(
        "/accounts",
        json={"firstName": first, "lastName": last, "password": password},
    )
    assert response.status_code == 201, f"Registration failed: {response.text}"
    return response.json()


async def login(client: AsyncClient, number: int, password: str) -> str:
    response = await client.post("/login", json={"number": number, "password": password})
    assert response.status_code == 200, f"Login failed: {response.text}"
    return response.json()["token"]


async def create_holder(
    client: AsyncClient,
    first: str,
    last: str,
    password: str,
    opening_balance: int = 0,
) -> Holder:
    """Register, log in and optionally fund an account through the API."""
    body = await register(client, first, last, password)
    token = await login(client, body["number"], password)
    holder = Holder(id=body["id"], number=body["number"], password=password, token=token)

    if opening_balance:
        response = await client.post(
            f"/accounts/{holder.id}/deposit",
            json={"amount": opening_balance},
            headers=holder.headers,
        )
        assert response.status_code == 200, f"Deposit failed: {response.text}"

    return holder


async def balance_of(client: AsyncClient, holder: Holder) -> int:
    response = await client.get(f"/accounts/{holder.id}", headers=holder.headers)
    assert response.status_code == 200, response.text
    return response.json()["balance"]
