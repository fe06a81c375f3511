# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the social registration service.
"""

# Base models
from .base import BaseEntity

# Enumerations
from .enums import (
    TriState,
    SubmitStatus,
    FieldKind,
    FilterType
)

# Core entities
from .entities import (
    Registration,
    AdminUser,
    UserContext
)

# Request models
from .requests import (
    DraftPath,
    RegistrationPath,
    MediaPath,
    FieldUpdateRequest,
    FieldBlurRequest,
    LoginRequest,
    CitizenLoginRequest,
    CreateRegistrationRequest,
    UpdateRegistrationRequest,
    RegistrationFilters
)

# Response models
from .responses import (
    HalLink,
    RegistrationResponse,
    AdminUserResponse,
    AuthTokenResponse,
    WizardStateResponse,
    StatsResponse,
    HealthCheckResponse,
    ErrorResponse,
    SuccessResponse
)

__all__ = [
    # Base models
    "BaseEntity",

    # Enumerations
    "TriState",
    "SubmitStatus",
    "FieldKind",
    "FilterType",

    # Core entities
    "Registration",
    "AdminUser",
    "UserContext",

    # Request models
    "DraftPath",
    "RegistrationPath",
    "MediaPath",
    "FieldUpdateRequest",
    "FieldBlurRequest",
    "LoginRequest",
    "CitizenLoginRequest",
    "CreateRegistrationRequest",
    "UpdateRegistrationRequest",
    "RegistrationFilters",

    # Response models
    "HalLink",
    "RegistrationResponse",
    "AdminUserResponse",
    "AuthTokenResponse",
    "WizardStateResponse",
    "StatsResponse",
    "HealthCheckResponse",
    "ErrorResponse",
    "SuccessResponse"
]
