from wishpool.services.errors import (
    AssignmentError,
    ConflictError,
    ErrorCode,
    RevealError,
    ValidationError,
    WishPoolError,
)

__all__ = [
    "AssignmentError",
    "ConflictError",
    "ErrorCode",
    "RevealError",
    "ValidationError",
    "WishPoolError",
]
