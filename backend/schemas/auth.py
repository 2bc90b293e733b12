"""Schemas for sign-up, sign-in and the current user."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SignUpRequest(BaseModel):
    """Profile and credentials for a new user.

    ``ssn`` is forwarded to Dwolla for customer verification and is
    never stored.
    """

    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    address1: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    postal_code: str = Field(min_length=5)
    date_of_birth: date
    ssn: str = Field(min_length=4, max_length=11)

    @field_validator("state")
    @classmethod
    def uppercase_state(cls, v: str) -> str:
        return v.upper()

    def dwolla_customer_payload(self) -> dict:
        """Build the Dwolla personal-customer payload."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "type": "personal",
            "address1": self.address1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "dateOfBirth": self.date_of_birth.isoformat(),
            "ssn": self.ssn,
        }


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """Public view of a user profile."""

    id: str
    email: str
    first_name: str
    last_name: str
    address1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    dwolla_customer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
