"""
Tests for the access guard on account-scoped endpoints.

These tests verify that every way of failing the guard produces the SAME
403 body, and that only a token naming the target account gets through:

  - No token, garbage token, expired token, foreign-secret token
  - Token signed with another algorithm and the right secret
  - Malformed account id in the path
  - Missing account (indistinguishable from someone else's account)
  - Valid token for account A used against account B
  - Token for an account deleted after the token was issued
  - The legacy x-jwt-token header is accepted
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from helpers import TEST_SECRET_KEY, create_holder


FORBIDDEN = {"error": "forbidden", "error_type": "forbidden"}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestDenials:

    async def test_no_token(self, client, ann):
        response = await client.get(f"/accounts/{ann.id}")
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_non_bearer_scheme(self, client, ann):
        response = await client.get(
            f"/accounts/{ann.id}", headers={"Authorization": f"Basic {ann.token}"}
        )
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_garbage_token(self, client, ann):
        response = await client.get(f"/accounts/{ann.id}", headers=_bearer("garbage"))
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_expired_token(self, client, token_service, ann):
        expired = token_service.issue(
            SimpleNamespace(number=ann.number), expires_delta=timedelta(seconds=-1)
        )
        response = await client.get(f"/accounts/{ann.id}", headers=_bearer(expired))
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_algorithm_confusion(self, client, ann):
        forged = jwt.encode(
            {
                "sub": str(ann.number),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            TEST_SECRET_KEY,
            algorithm="HS512",
        )
        response = await client.get(f"/accounts/{ann.id}", headers=_bearer(forged))
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_foreign_secret(self, client, ann):
        forged = jwt.encode(
            {
                "sub": str(ann.number),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "attacker-secret",
            algorithm="HS256",
        )
        response = await client.get(f"/accounts/{ann.id}", headers=_bearer(forged))
        assert response.status_code == 403

    @pytest.mark.parametrize(
        "bad_id", ["abc", "0", "-1", "1.5", "%C2%B2", "2147483648", "9" * 25, "9" * 5000]
    )
    async def test_malformed_account_id(self, client, ann, bad_id):
        response = await client.get(f"/accounts/{bad_id}", headers=ann.headers)
        assert response.status_code == 403
        assert response.json() == FORBIDDEN

    async def test_missing_account_looks_like_forbidden(self, client, ann, bob):
        """A nonexistent id and someone else's id get identical answers."""
        missing = await client.get("/accounts/999999", headers=ann.headers)
        foreign = await client.get(f"/accounts/{bob.id}", headers=ann.headers)
        assert missing.status_code == foreign.status_code == 403
        assert missing.json() == foreign.json() == FORBIDDEN

    async def test_token_for_deleted_account(self, client):
        holder = await create_holder(client, "Temp", "User", "pw")
        await client.delete(f"/accounts/{holder.id}", headers=holder.headers)

        response = await client.get(f"/accounts/{holder.id}", headers=holder.headers)
        assert response.status_code == 403


class TestCrossAccount:
    """A token for account A never opens account B."""

    async def test_read(self, client, ann, bob):
        response = await client.get(f"/accounts/{ann.id}", headers=bob.headers)
        assert response.status_code == 403

    async def test_update(self, client, ann, bob):
        response = await client.patch(
            f"/accounts/{ann.id}", json={"firstName": "Mallory"}, headers=bob.headers
        )
        assert response.status_code == 403

        check = await client.get(f"/accounts/{ann.id}", headers=ann.headers)
        assert check.json()["firstName"] == "Ann"

    async def test_delete(self, client, ann, bob):
        response = await client.delete(f"/accounts/{ann.id}", headers=bob.headers)
        assert response.status_code == 403

        check = await client.get(f"/accounts/{ann.id}", headers=ann.headers)
        assert check.status_code == 200

    async def test_deposit(self, client, ann, bob):
        response = await client.post(
            f"/accounts/{ann.id}/deposit", json={"amount": 10}, headers=bob.headers
        )
        assert response.status_code == 403

    async def test_many_pairs(self, client):
        holders = [await create_holder(client, f"H{i}", "Test", "pw") for i in range(3)]
        for a in holders:
            for b in holders:
                response = await client.get(f"/accounts/{b.id}", headers=a.headers)
                expected = 200 if a.id == b.id else 403
                assert response.status_code == expected

    async def test_denial_checked_before_body_validation(self, client, ann, bob):
        """A foreign caller with a broken body still just gets 403."""
        response = await client.post(
            f"/accounts/{ann.id}/transfer", json={"amount": -5}, headers=bob.headers
        )
        assert response.status_code == 403


class TestAccepted:

    async def test_legacy_header(self, client, ann):
        response = await client.get(
            f"/accounts/{ann.id}", headers={"x-jwt-token": ann.token}
        )
        assert response.status_code == 200
        assert response.json()["number"] == ann.number
