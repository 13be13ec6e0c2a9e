"""
User record models mirrored from the remote user directory.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Geo(_FrozenModel):
    """Geo coordinates, kept as the strings the remote API returns."""
    lat: Optional[str] = None
    lng: Optional[str] = None


class Address(_FrozenModel):
    """Postal address block."""
    street: Optional[str] = None
    suite: Optional[str] = None
    city: Optional[str] = None
    zipcode: Optional[str] = None
    geo: Optional[Geo] = None


class Company(_FrozenModel):
    """Employer block."""
    name: Optional[str] = None
    catch_phrase: Optional[str] = Field(None, alias="catchPhrase")
    bs: Optional[str] = None


class UserDraft(_FrozenModel):
    """User payload without an identifier; body of create and update calls."""
    name: Optional[str] = Field(None, description="Display name")
    username: Optional[str] = Field(None, description="Handle")
    email: Optional[str] = Field(None, description="Contact address")
    address: Optional[Address] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    company: Optional[Company] = None

    def to_payload(self) -> dict:
        """JSON document sent to the remote API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"id"})


class UserRecord(UserDraft):
    """User as materialized from the remote API.

    ``id`` is assigned by the remote system and is absent only on
    responses from misbehaving servers.
    """
    id: Optional[int] = Field(None, description="Server-assigned identifier")
