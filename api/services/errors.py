# SPDX-License-Identifier: Apache-2.0

"""
Errors raised by external collaborators (database, object storage).
"""

from typing import Optional


class CollaboratorError(Exception):
    """Raised when a storage or network collaborator fails."""

    default_message = "Erro ao processar solicitação"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.message = message


class ConflictError(CollaboratorError):
    """Raised when an insert violates a uniqueness constraint."""

    default_message = "Registro duplicado"


class NotFoundError(CollaboratorError):
    """Raised when the addressed record does not exist."""

    default_message = "Registro não encontrado"
