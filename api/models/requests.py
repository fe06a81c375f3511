# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.
"""

import re
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from domain.masks import unmask
from .enums import FilterType


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


# Path parameters

class DraftPath(BaseModel):
    session_id: str = Field(..., description="Draft session identifier")


class RegistrationPath(BaseModel):
    registration_id: str = Field(..., description="Registration identifier")


class MediaPath(BaseModel):
    bucket: str = Field(..., description="Storage bucket")
    path: str = Field(..., description="Object path inside the bucket")


# Wizard

class FieldUpdateRequest(BaseModel):
    """Request model for a field edit inside a draft."""

    field: str = Field(..., min_length=1, description="Field key")
    value: Any = Field(None, description="New raw value")


class FieldBlurRequest(BaseModel):
    """Request model for leaving a field."""

    field: str = Field(..., min_length=1, description="Field key")


# Authentication

class LoginRequest(BaseModel):
    """Request model for staff authentication."""

    email: str = Field(..., description="Staff email address")
    password: str = Field(..., min_length=1, description="Staff password")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if not re.match(EMAIL_PATTERN, v.lower()):
            raise ValueError('Invalid email format')
        return v.lower()


class CitizenLoginRequest(BaseModel):
    """Request model for citizen authentication by CPF."""

    cpf: str = Field(..., description="CPF with or without mask")
    password: str = Field(..., min_length=1, description="Password chosen at registration")

    @field_validator('cpf')
    @classmethod
    def validate_cpf(cls, v):
        from domain.validation import is_valid_cpf
        if not is_valid_cpf(v):
            raise ValueError('CPF inválido')
        return unmask(v)


# Admin dashboard

class CreateRegistrationRequest(BaseModel):
    """Request model for a registration added by staff."""

    full_name: str = Field(..., min_length=1, max_length=200)
    cpf: str = Field(...)
    nis_pis: str = Field(...)
    voter_registration: Optional[str] = Field(None)
    password: str = Field(...)
    personal_phone: str = Field(...)
    reference_phone_1: str = Field(...)
    reference_phone_2: Optional[str] = Field(None)
    reference_phone_3: Optional[str] = Field(None)
    adults_count: int = Field(default=1, ge=1)
    minors_count: int = Field(default=0, ge=0)
    has_disability: bool = Field(default=False)
    disability_count: Optional[int] = Field(None, ge=1)
    address: str = Field(..., min_length=1)
    neighborhood: str = Field(..., min_length=1)
    cep: str = Field(...)
    female_head_of_household: bool = Field(default=False)
    has_elderly: bool = Field(default=False)
    vulnerable_situation: bool = Field(default=False)
    homeless: bool = Field(default=False)
    domestic_violence_victim: bool = Field(default=False)
    cohabitation: bool = Field(default=False)

    @field_validator('cpf')
    @classmethod
    def validate_cpf(cls, v):
        from domain.validation import is_valid_cpf
        if not is_valid_cpf(v):
            raise ValueError('CPF inválido')
        return unmask(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        from domain.validation import MIN_PASSWORD_LENGTH
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError('A senha deve ter pelo menos 6 caracteres')
        return v

    @field_validator('personal_phone', 'reference_phone_1')
    @classmethod
    def validate_phone(cls, v):
        from domain.validation import is_valid_phone
        if not is_valid_phone(v):
            raise ValueError('Telefone deve ter 10 ou 11 dígitos')
        return unmask(v)

    @field_validator('reference_phone_2', 'reference_phone_3')
    @classmethod
    def validate_optional_phone(cls, v):
        from domain.validation import is_valid_phone
        if v and not is_valid_phone(v):
            raise ValueError('Telefone inválido')
        return unmask(v) or None

    @field_validator('cep')
    @classmethod
    def validate_cep(cls, v):
        from domain.validation import is_valid_cep
        if not is_valid_cep(v):
            raise ValueError('CEP inválido')
        return unmask(v)

    @model_validator(mode='after')
    def drop_orphan_disability_count(self):
        if not self.has_disability:
            self.disability_count = None
        return self


class UpdateRegistrationRequest(BaseModel):
    """Request model for a partial registration edit."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    nis_pis: Optional[str] = Field(None)
    voter_registration: Optional[str] = Field(None)
    personal_phone: Optional[str] = Field(None)
    reference_phone_1: Optional[str] = Field(None)
    reference_phone_2: Optional[str] = Field(None)
    reference_phone_3: Optional[str] = Field(None)
    adults_count: Optional[int] = Field(None, ge=1)
    minors_count: Optional[int] = Field(None, ge=0)
    has_disability: Optional[bool] = Field(None)
    disability_count: Optional[int] = Field(None, ge=1)
    address: Optional[str] = Field(None, min_length=1)
    neighborhood: Optional[str] = Field(None, min_length=1)
    cep: Optional[str] = Field(None)
    female_head_of_household: Optional[bool] = Field(None)
    has_elderly: Optional[bool] = Field(None)
    vulnerable_situation: Optional[bool] = Field(None)
    homeless: Optional[bool] = Field(None)
    domestic_violence_victim: Optional[bool] = Field(None)
    cohabitation: Optional[bool] = Field(None)

    @field_validator('personal_phone', 'reference_phone_1', 'reference_phone_2', 'reference_phone_3')
    @classmethod
    def validate_phone(cls, v):
        from domain.validation import is_valid_phone
        if v and not is_valid_phone(v):
            raise ValueError('Telefone inválido')
        return unmask(v) if v else v

    @field_validator('cep')
    @classmethod
    def validate_cep(cls, v):
        from domain.validation import is_valid_cep
        if v is not None and not is_valid_cep(v):
            raise ValueError('CEP inválido')
        return unmask(v) if v else v

    @field_validator('nis_pis', 'voter_registration')
    @classmethod
    def validate_digits(cls, v):
        return unmask(v) if v else v

    def to_update(self):
        """Fields explicitly sent by the client."""
        return self.model_dump(exclude_unset=True)


class RegistrationFilters(BaseModel):
    """Query parameters of the registration table."""

    search: Optional[str] = Field(None, description="Search in name, CPF digits and neighborhood")
    filter_type: FilterType = Field(default=FilterType.ALL, description="Category filter")
    page: int = Field(default=1, ge=1, description="Page number")
