from __future__ import annotations

import enum
from typing import Optional


class ErrorCode(str, enum.Enum):
    INVALID_CAPACITY = "INVALID_CAPACITY"
    INVALID_DEADLINE = "INVALID_DEADLINE"
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
    DEADLINE_PASSED = "DEADLINE_PASSED"
    POOL_FULL = "POOL_FULL"
    EMPTY_WISH = "EMPTY_WISH"
    WISH_TOO_LONG = "WISH_TOO_LONG"
    EDIT_LIMIT_REACHED = "EDIT_LIMIT_REACHED"
    WISH_EXISTS = "WISH_EXISTS"
    NO_WISH = "NO_WISH"
    NOT_ENOUGH_WISHES = "NOT_ENOUGH_WISHES"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    NO_ASSIGNMENT = "NO_ASSIGNMENT"


MESSAGES = {
    ErrorCode.INVALID_CAPACITY: "Capacity must be a whole number between 2 and 500.",
    ErrorCode.INVALID_DEADLINE: "Deadline must be a valid instant after 1970-01-01.",
    ErrorCode.ALREADY_ASSIGNED: "Pairs have already been assigned for this round.",
    ErrorCode.DEADLINE_PASSED: "The submission deadline has passed.",
    ErrorCode.POOL_FULL: "The wish pool is full.",
    ErrorCode.EMPTY_WISH: "Your wish cannot be empty.",
    ErrorCode.WISH_TOO_LONG: "Your wish must be at most 200 characters.",
    ErrorCode.EDIT_LIMIT_REACHED: "You have already edited your wish once.",
    ErrorCode.WISH_EXISTS: "You have already submitted a wish.",
    ErrorCode.NO_WISH: "You have not submitted a wish yet.",
    ErrorCode.NOT_ENOUGH_WISHES: "At least 2 wishes are needed to assign pairs.",
    ErrorCode.NOT_ASSIGNED: "Pairs have not been assigned yet.",
    ErrorCode.NO_ASSIGNMENT: "You were not part of this round's pairing.",
}


class WishPoolError(RuntimeError):
    def __init__(self, code: ErrorCode, message: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message or MESSAGES[code])


class ValidationError(WishPoolError):
    pass


class ConflictError(WishPoolError):
    pass


class AssignmentError(WishPoolError):
    pass


class RevealError(WishPoolError):
    pass
