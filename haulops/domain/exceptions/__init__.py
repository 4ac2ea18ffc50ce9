from .errors import ConflictError, DomainError, NotFoundError, ValidationError

__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "ValidationError",
]
