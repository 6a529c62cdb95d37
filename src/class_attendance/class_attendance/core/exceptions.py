class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class NotFoundError(DomainError):
    """Raised when a class, session or student does not exist."""

    kind = "not_found"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "forbidden"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "invalid_argument"


class ConflictError(DomainError):
    """Raised when an attendance session already exists for a slot."""

    kind = "conflict"


class RuleViolationError(DomainError):
    """Raised when an operation is not allowed in the session's current state."""

    kind = "invalid_rule_violation"


class PersistenceError(Exception):
    """Raised when the storage layer fails. Not a domain error."""

    kind = "internal"
