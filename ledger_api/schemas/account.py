"""
Pydantic schemas for Account endpoints.

Field names on the wire are camelCase (firstName, createdAt, ...). Every
schema uses the to_camel alias generator and still accepts snake_case when
built from Python code. All monetary amounts are integer minor units.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every request/response body in the API."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class AccountCreateRequest(CamelModel):
    """Request body for POST /accounts."""
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=128)


class AccountUpdateRequest(CamelModel):
    """
    Request body for PATCH /accounts/{id}.

    Only names and the password can change. The account number and the
    balance are not accepted here (extra fields are rejected with 422).
    """
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=1, max_length=128)


class AccountResponse(CamelModel):
    """Full representation of an account, returned to its owner."""
    id: int
    first_name: str
    last_name: str
    number: int
    balance: int
    created_at: datetime


class AccountSummaryResponse(CamelModel):
    """Minimal account info returned by the open list and lookup endpoints.

    Intentionally excludes the balance — this is what anyone can see when
    checking a destination number before initiating a transfer.
    """
    id: int
    first_name: str
    last_name: str
    number: int


class AccountDeletedResponse(CamelModel):
    """Response body for DELETE /accounts/{id}."""
    deleted: int
