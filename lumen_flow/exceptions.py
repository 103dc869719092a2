"""Custom exceptions for Lumen Flow."""


class LumenFlowError(Exception):
    """Base class for application errors."""

    pass


class NotificationNotFoundError(LumenFlowError, ValueError):
    """Raised when a notification id does not belong to the user."""

    pass


class InvalidMutedEntityError(LumenFlowError, ValueError):
    """Raised when muting an entity type the nudges do not know about."""

    pass


class RunDeadlineExceeded(LumenFlowError):
    """Raised when an evaluator pass runs past its deadline."""

    pass
