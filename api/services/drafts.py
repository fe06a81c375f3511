# SPDX-License-Identifier: Apache-2.0

"""
Draft session store for the registration wizard.

A draft is the snapshot of a RegistrationWizard kept in Redis under a random
session id. Every save refreshes the TTL, so abandoned drafts expire on
their own.
"""

import os
import secrets
import logging
from typing import Optional

from opentelemetry import trace

from domain.wizard import RegistrationWizard
from services.errors import CollaboratorError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 1800


class DraftStoreUnavailableError(CollaboratorError):
    """Raised when draft sessions cannot be read or written."""

    default_message = "Serviço de rascunhos indisponível"


class DraftSessionStore:
    """Keeps wizard snapshots in Redis."""

    KEY_PREFIX = "registration:draft:"

    def __init__(self, redis_service, ttl_seconds: Optional[int] = None, clock=None):
        self.redis_service = redis_service
        self.ttl_seconds = ttl_seconds or int(os.getenv("DRAFT_SESSION_TTL_SECONDS", DEFAULT_TTL_SECONDS))
        self.clock = clock

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    def _ensure_available(self) -> None:
        if not self.redis_service.is_available():
            raise DraftStoreUnavailableError()

    def _new_wizard(self) -> RegistrationWizard:
        return RegistrationWizard(clock=self.clock) if self.clock else RegistrationWizard()

    def create(self):
        """
        Start a new draft.

        Returns:
            Tuple of (session_id, wizard)
        """
        self._ensure_available()
        session_id = secrets.token_urlsafe(24)
        wizard = self._new_wizard()
        self.save(session_id, wizard)
        logger.info("Draft session created")
        return session_id, wizard

    def load(self, session_id: str) -> Optional[RegistrationWizard]:
        """Restore a draft, or None when it does not exist or expired."""
        self._ensure_available()
        with tracer.start_as_current_span("drafts.load"):
            snapshot = self.redis_service.get_json(self._key(session_id))
            if snapshot is None:
                return None
            if self.clock:
                return RegistrationWizard.restore(snapshot, clock=self.clock)
            return RegistrationWizard.restore(snapshot)

    def save(self, session_id: str, wizard: RegistrationWizard) -> None:
        self._ensure_available()
        with tracer.start_as_current_span("drafts.save"):
            if not self.redis_service.set_with_ttl(self._key(session_id), wizard.snapshot(), self.ttl_seconds):
                raise DraftStoreUnavailableError()

    def delete(self, session_id: str) -> bool:
        self._ensure_available()
        deleted = self.redis_service.delete(self._key(session_id))
        if deleted:
            logger.info("Draft session discarded")
        return deleted
