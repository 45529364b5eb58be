from __future__ import annotations


class ArcError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ArcError, LookupError):
    """Unknown contract name, scheme key or address."""


class MissingParameterError(ArcError):
    """A required value is absent for the resolution path taken."""


class ConflictingParameterError(ArcError):
    """A caller-supplied value is determined authoritatively by the registry."""


class InvalidFormatError(ArcError, ValueError):
    """Malformed permission string, address or hash."""


class EventNotFoundError(ArcError, LookupError):
    """No matching log at the requested position."""
