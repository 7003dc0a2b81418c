"""
Pydantic schemas for households, persons and linked phone numbers.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class HouseholdCreate(BaseModel):
    """Schema for creating a household; the caller becomes its owner."""
    name: str = Field(..., max_length=120, description="Household name")


class HouseholdUpdate(BaseModel):
    name: str = Field(..., max_length=120)


class PersonCreate(BaseModel):
    """Schema for adding a kid (or anyone worth quoting)."""
    display_name: Optional[str] = Field(None, max_length=120, description="Name shown on quotes")
    birthdate: Optional[date] = None
    avatar_url: Optional[str] = None


class PersonUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=120)
    birthdate: Optional[date] = None
    avatar_url: Optional[str] = None


class PhoneNumberCreate(BaseModel):
    phone_number: str = Field(..., description="Any common format; stored as E.164")
