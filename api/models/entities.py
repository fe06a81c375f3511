# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the social registration service.
"""

import re
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from bson import ObjectId
from .base import BaseEntity


def _digits(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return re.sub(r'[^0-9]', '', str(value))


class Registration(BaseEntity):
    """Persisted social registration of a household."""

    full_name: str = Field(..., min_length=1, max_length=200, description="Citizen full name")
    cpf: str = Field(..., description="CPF digits")
    nis_pis: str = Field(..., description="NIS/PIS digits")
    voter_registration: Optional[str] = Field(None, description="Voter registration digits")
    password_hash: Optional[str] = Field(None, exclude=True, description="bcrypt hash of the citizen password")

    personal_phone: str = Field(..., description="Personal phone digits")
    reference_phone_1: str = Field(..., description="First reference phone digits")
    reference_phone_2: Optional[str] = Field(None, description="Second reference phone digits")
    reference_phone_3: Optional[str] = Field(None, description="Third reference phone digits")

    adults_count: int = Field(default=1, ge=1, description="Adults in the household")
    minors_count: int = Field(default=0, ge=0, description="Minors in the household")
    has_disability: bool = Field(default=False, description="Someone in the household has a disability")
    disability_count: Optional[int] = Field(None, ge=1, description="People with disability")
    address: str = Field(..., min_length=1, description="Full address")
    neighborhood: str = Field(..., min_length=1, description="Neighborhood")
    cep: str = Field(..., description="CEP digits")

    female_head_of_household: bool = Field(default=False)
    has_elderly: bool = Field(default=False)
    vulnerable_situation: bool = Field(default=False)
    homeless: bool = Field(default=False)
    domestic_violence_victim: bool = Field(default=False)
    cohabitation: bool = Field(default=False)

    @field_validator('cpf', 'nis_pis', 'personal_phone', 'reference_phone_1', 'cep')
    @classmethod
    def validate_required_digits(cls, v):
        """Keep only the digits of masked documents."""
        digits = _digits(v)
        if not digits:
            raise ValueError('Field must contain digits')
        return digits

    @field_validator('voter_registration', 'reference_phone_2', 'reference_phone_3')
    @classmethod
    def validate_optional_digits(cls, v):
        return _digits(v) or None

    @field_validator('full_name', 'address', 'neighborhood')
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_disability_count(self):
        """A disability count only exists alongside the disability flag."""
        if not self.has_disability and self.disability_count is not None:
            raise ValueError('disability_count must be empty when has_disability is false')
        return self

    def to_document(self) -> Dict[str, Any]:
        """MongoDB document, including the password hash."""
        document = self.model_dump(exclude={"id"})
        document["_id"] = ObjectId(self.id)
        document["password_hash"] = self.password_hash
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Registration":
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls(**data)


class AdminUser(BaseEntity):
    """Staff member authorized to use the dashboard."""

    email: str = Field(..., description="Staff email address")
    full_name: str = Field(..., min_length=1, max_length=200, description="Staff full name")
    profile_photo_url: Optional[str] = Field(None, description="Public URL of the profile photo")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, v.lower()):
            raise ValueError('Invalid email format')
        return v.lower()

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "AdminUser":
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls(**data)


class UserContext(BaseModel):
    """Authenticated staff member attached to a request."""

    user_id: str = Field(..., description="Authenticated user ID")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="User display name")
    is_admin: bool = Field(default=False, description="Whether the user maps to an admin record")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    session_id: Optional[str] = Field(None, description="Session identifier")

    model_config = ConfigDict(
        use_enum_values=True
    )
