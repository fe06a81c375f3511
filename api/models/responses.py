# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class RegistrationResponse(BaseModel):
    """Registration as shown in the dashboard (never carries the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Registration ID")
    full_name: str
    cpf: str
    nis_pis: str
    voter_registration: Optional[str] = None
    personal_phone: str
    reference_phone_1: str
    reference_phone_2: Optional[str] = None
    reference_phone_3: Optional[str] = None
    adults_count: int
    minors_count: int
    has_disability: bool
    disability_count: Optional[int] = None
    address: str
    neighborhood: str
    cep: str
    female_head_of_household: bool
    has_elderly: bool
    vulnerable_situation: bool
    homeless: bool
    domestic_violence_victim: bool
    cohabitation: bool
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class AdminUserResponse(BaseModel):
    """Staff profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Admin user ID")
    email: str = Field(..., description="Staff email")
    full_name: str = Field(..., description="Staff full name")
    profile_photo_url: Optional[str] = Field(None, description="Profile photo URL")


class AuthTokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration in seconds")
    user: AdminUserResponse = Field(..., description="Authenticated staff member")


class WizardStateResponse(BaseModel):
    """State of a registration draft session."""

    session_id: str = Field(..., description="Draft session identifier")
    current_step: int = Field(..., description="Zero-based step index")
    total_steps: int = Field(..., description="Number of steps")
    is_first_step: bool
    is_last_step: bool
    status: str = Field(..., description="Submission status")
    status_message: Optional[str] = Field(None, description="Status banner text")
    errors: Dict[str, str] = Field(default_factory=dict, description="Field errors")
    section: Dict[str, Any] = Field(..., description="Rendered current section")


class StatsResponse(BaseModel):
    """Dashboard counters and daily series."""

    total: int
    homeless: int
    violence: int
    disability: int
    total_phones: int
    daily: List[Dict[str, Any]] = Field(default_factory=list, description="Registrations per day")


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    timestamp: datetime = Field(..., description="Check timestamp")
    dependencies: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Dependency health")


class ErrorResponse(BaseModel):
    """Error response model following RFC 7807."""

    type: str = Field(..., description="Error type URI")
    title: str = Field(..., description="Error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Error detail")
    instance: str = Field(..., description="Request instance")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Validation errors")


class SuccessResponse(BaseModel):
    """Generic success response."""

    message: str = Field(..., description="Success message")
    data: Optional[Dict[str, Any]] = Field(None, description="Additional data")
