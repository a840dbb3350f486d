"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Caller supplied a value outside the contract (negative amount, unknown enum, missing field)"""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'")


class ConcurrentUpdateError(DomainException):
    """Streak record changed between read and write; retry with fresh state"""

    pass


class InsufficientPointsError(DomainException):
    """Points balance too low for a redemption"""

    pass


class StreakNotFoundError(DomainException):
    """No streak record exists for the user"""

    pass
