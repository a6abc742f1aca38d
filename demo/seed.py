#!/usr/bin/env python3
"""
Demo seed script — populates a running server with sample accounts.

!! NOT FOR PRODUCTION !!
This script creates accounts with known passwords, funds them and makes a
few transfers between them. It is intended ONLY for local demos.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py

    # Reset the database and re-seed:
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000

Account numbers are random, so the script prints them together with the
passwords at the end.
"""

import argparse
import asyncio
import os

import httpx

BASE_URL = "http://localhost:8000"

# ---------------------------------------------------------------------------
# Demo accounts
# ---------------------------------------------------------------------------

HOLDERS = [
    {"first_name": "Noah", "last_name": "Vance", "password": "NoahDemo123!", "deposit": 5_000_00},
    {"first_name": "Alice", "last_name": "Chen", "password": "AliceDemo123!", "deposit": 850_00},
    {"first_name": "Bob", "last_name": "Martinez", "password": "BobDemo123!", "deposit": 1_200_00},
    {"first_name": "Carol", "last_name": "Nguyen", "password": "CarolDemo123!", "deposit": 0},
]

# (from index, to index, amount)
TRANSFERS = [
    (0, 1, 250_00),
    (0, 3, 75_50),
    (2, 1, 40_00),
    (1, 3, 12_25),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def cents_to_dollars(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client: httpx.AsyncClient, holder: dict) -> dict:
    """Register an account, return {id, number}."""
    resp = await client.post(f"{BASE_URL}/accounts", json={
        "firstName": holder["first_name"],
        "lastName": holder["last_name"],
        "password": holder["password"],
    })
    resp.raise_for_status()
    data = resp.json()
    return {"id": data["id"], "number": data["number"]}


async def login(client: httpx.AsyncClient, number: int, password: str) -> str:
    resp = await client.post(f"{BASE_URL}/login", json={"number": number, "password": password})
    resp.raise_for_status()
    return resp.json()["token"]


async def deposit(client: httpx.AsyncClient, token: str, account_id: int, amount: int) -> dict:
    resp = await client.post(
        f"{BASE_URL}/accounts/{account_id}/deposit",
        json={"amount": amount},
        headers=auth_header(token),
    )
    resp.raise_for_status()
    return resp.json()


async def do_transfer(client: httpx.AsyncClient, token: str, account_id: int,
                      to_number: int, amount: int) -> httpx.Response:
    return await client.post(
        f"{BASE_URL}/accounts/{account_id}/transfer",
        json={"toAccountNumber": to_number, "amount": amount},
        headers=auth_header(token),
    )


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

async def seed(base_url: str) -> None:
    global BASE_URL
    BASE_URL = base_url

    print("\n========================================")
    print("  DEMO SEED — NOT FOR PRODUCTION")
    print("========================================\n")

    async with httpx.AsyncClient(timeout=30.0) as client:
        # Health check
        try:
            health = await client.get(f"{BASE_URL}/health")
            health.raise_for_status()
        except (httpx.ConnectError, httpx.HTTPStatusError):
            print(f"  ERROR: Cannot connect to {BASE_URL}")
            print("  Start the server first: uvicorn ledger_api.main:create_app --factory\n")
            return

        created = []
        for holder in HOLDERS:
            account = await register(client, holder)
            token = await login(client, account["number"], holder["password"])
            if holder["deposit"]:
                await deposit(client, token, account["id"], holder["deposit"])
            created.append({**account, "token": token})
            log(f"{holder['first_name']:<8s} #{account['number']}  "
                f"opened with {cents_to_dollars(holder['deposit'])}")

        print()
        for src, dst, amount in TRANSFERS:
            sender, receiver = created[src], created[dst]
            resp = await do_transfer(client, sender["token"], sender["id"],
                                     receiver["number"], amount)
            if resp.status_code == 200:
                log(f"#{sender['number']} -> #{receiver['number']}  "
                    f"{cents_to_dollars(amount)}  (sender now "
                    f"{cents_to_dollars(resp.json()['balance'])})")
            else:
                log(f"#{sender['number']} -> #{receiver['number']}  "
                    f"FAILED: {resp.json().get('error')}")

    # --- Summary ---
    print("\n========================================")
    print("  SEED COMPLETE — Login Credentials")
    print("========================================")
    print(f"\n  {'Name':<10s} {'Number':<12s} {'Password'}")
    print(f"  {'─' * 10} {'─' * 12} {'─' * 16}")
    for holder, account in zip(HOLDERS, created):
        print(f"  {holder['first_name']:<10s} {account['number']:<12d} {holder['password']}")
    print()


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "ledger.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample accounts, deposits and transfers for demos.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    await seed(args.base_url)


if __name__ == "__main__":
    asyncio.run(main())
