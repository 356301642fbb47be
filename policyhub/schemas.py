from __future__ import annotations

import time
from dataclasses import dataclass, fields
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FRAUD_CLAIM_FIELDS: tuple[str, ...] = (
    "claimType",
    "dateOfIncident",
    "incidentLocation",
    "incidentDescription",
    "claimAmount",
)


class ClaimStatus:
    SUBMITTED = "SUBMITTED"
    IN_REVIEW = "IN_REVIEW"


class ClaimSubmission(BaseModel):
    """Body of POST /api/claims/submit. Unknown fields are kept but never forwarded."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    claim_type: Any | None = Field(default=None, alias="claimType")
    date_of_incident: Any | None = Field(default=None, alias="dateOfIncident")
    incident_location: Any | None = Field(default=None, alias="incidentLocation")
    incident_description: Any | None = Field(default=None, alias="incidentDescription")
    claim_amount: Any | None = Field(default=None, alias="claimAmount")

    def fraud_claim_data(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True)
        return {name: data.get(name) for name in FRAUD_CLAIM_FIELDS}


@dataclass(slots=True)
class Claim:
    id: Any = None
    claim_type: Any = None
    date_of_incident: Any = None
    claim_amount: Any = None
    public_status: str | None = None
    incident_description: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Claim:
        return cls(**{f.name: row.get(f.name) for f in fields(cls)})


@dataclass(slots=True)
class Profile:
    id: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    occupation: str | None = None
    employer: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Profile:
        values = {f.name: row.get(f.name) for f in fields(cls)}
        values["id"] = str(values["id"] or "")
        return cls(**values)


@dataclass(slots=True)
class AuthSession:
    access_token: str
    refresh_token: str | None
    expires_at: float | None
    user_id: str | None
    email: str | None

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return current >= self.expires_at

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> AuthSession:
        user = data.get("user") or {}
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = time.time() + float(data["expires_in"])
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=data.get("refresh_token"),
            expires_at=float(expires_at) if expires_at is not None else None,
            user_id=user.get("id"),
            email=user.get("email"),
        )
