class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or a required field is missing."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when an employee, session or request id does not exist."""


class ConflictError(DomainError):
    """Raised when an action is not allowed in the current state. Never mutates."""


class SessionAlreadyOpen(ConflictError):
    pass


class NoOpenSession(ConflictError):
    pass


class BreakAlreadyStarted(ConflictError):
    pass


class NoActiveBreak(ConflictError):
    pass


class SessionStillOpen(ConflictError):
    pass


class NoSessionToday(ConflictError):
    pass


class AlreadyDecided(ConflictError):
    pass


class Forbidden(ConflictError, AuthorizationError):
    pass


class UpstreamError(DomainError):
    """Photo upload or geocoding failed; the client may retry."""
