# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Cadastro Social platform.
"""

from enum import Enum
from typing import Any, Optional


class TriState(str, Enum):
    """Answer to a yes/no question that may still be unanswered."""
    UNANSWERED = "unanswered"
    YES = "yes"
    NO = "no"

    @classmethod
    def from_value(cls, value: Any) -> "TriState":
        """Coerce JSON-style input (None/True/False or enum names) to a TriState."""
        if isinstance(value, TriState):
            return value
        if value is None or value == "":
            return cls.UNANSWERED
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in ("yes", "true", "sim", "1"):
                return cls.YES
            if normalized in ("no", "false", "nao", "não", "0"):
                return cls.NO
            if normalized == "unanswered":
                return cls.UNANSWERED
        raise ValueError(f"Invalid tri-state value: {value!r}")

    def to_optional_bool(self) -> Optional[bool]:
        """JSON representation: None while unanswered."""
        if self is TriState.UNANSWERED:
            return None
        return self is TriState.YES

    def to_bool(self) -> bool:
        """Storage representation: unanswered is stored as False."""
        return self is TriState.YES


class SubmitStatus(str, Enum):
    """Submission status of the registration wizard."""
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILURE = "failure"


class FieldKind(str, Enum):
    """Input kinds of the registration form."""
    TEXT = "text"
    MASKED = "masked"
    SECRET = "secret"
    COUNT = "count"
    TRI_STATE = "tri_state"


class FilterType(str, Enum):
    """Category filters of the admin dashboard."""
    ALL = "all"
    DISABILITY = "disability"
    ELDERLY = "elderly"
    VULNERABLE = "vulnerable"
    FEMALE_HEAD = "female_head"
    HOMELESS = "homeless"
    VIOLENCE = "violence"
