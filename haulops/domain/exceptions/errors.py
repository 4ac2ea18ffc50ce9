from __future__ import annotations


class DomainError(Exception):
    """Base exception for haul-operation failures."""


class ValidationError(DomainError, ValueError):
    """Raised for malformed input (coordinates, missing fields) before any mutation."""


class NotFoundError(DomainError):
    """Raised when a trip, vehicle or driver does not exist."""


class ConflictError(DomainError):
    """Raised for illegal state transitions and lost status races."""
