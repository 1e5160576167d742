"""Exception taxonomy for the coordination engine.

Raised errors cover bad references and invalid transitions. Contention
(lock denial) and absence (no next task, missing knowledge topic) are
ordinary return values, never exceptions.
"""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for engine errors surfaced to callers."""


class AlreadyExistsError(OrchestratorError):
    """Creating something whose name is already taken."""


class NotFoundError(OrchestratorError):
    """Referencing an unknown workstream or task in a mutating call."""


class InvalidStateError(OrchestratorError):
    """A transition that the current status does not allow."""


class StoreError(OrchestratorError):
    """The state document is unreadable or the store lock timed out."""
