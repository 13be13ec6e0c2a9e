"""
Patient data models.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PatientFields(BaseModel):
    """Caller-supplied patient fields, used for both create and update."""
    first_name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    date_of_birth: date = Field(..., description="Date of birth")
    contact_number: Optional[str] = Field(None, max_length=20, description="Contact number")
    medical_history: Optional[str] = Field(None, description="Free-text medical history")


class PatientRecord(PatientFields):
    """Persisted patient."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
