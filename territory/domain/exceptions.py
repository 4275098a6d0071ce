"""Base exception classes for the territory domain layer."""


class TerritoryError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class so that
    callers can catch the whole family in one place.

    Attributes:
        retryable: True when the same operation may succeed if re-attempted
            (a transient conflict), False for permanent rejections.
    """

    retryable: bool = False

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
