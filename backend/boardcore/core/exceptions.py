"""Custom exception classes for the application.

Every domain failure carries a stable ``code`` and the HTTP status the API
layer renders it with. None of them are transient: callers should re-fetch
state instead of retrying the same call.
"""


class BoardException(Exception):
    """Base exception for all board errors."""

    code = "board_error"
    status_code = 400

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Not found (404)
# ---------------------------------------------------------------------------

class NotFoundError(BoardException):
    """Raised when a requested resource is not found."""

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: object):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class TargetNotFound(NotFoundError):
    code = "target_not_found"


class PostNotFound(NotFoundError):
    code = "post_not_found"

    def __init__(self, identifier: object):
        super().__init__("post", identifier)


class ParentNotFound(NotFoundError):
    code = "parent_not_found"

    def __init__(self, identifier: object):
        super().__init__("comment", identifier)


# ---------------------------------------------------------------------------
# Authorization (403)
# ---------------------------------------------------------------------------

class AuthorizationError(BoardException):
    code = "forbidden"
    status_code = 403


class Unauthorized(AuthorizationError):
    """The caller is neither the required author nor an admin."""

    code = "unauthorized"


# ---------------------------------------------------------------------------
# Conflict (409)
# ---------------------------------------------------------------------------

class ConflictError(BoardException):
    code = "conflict"
    status_code = 409


class DuplicateInteraction(ConflictError):
    """A ledger record already exists for (kind, target, user)."""

    code = "duplicate_interaction"


class AlreadyLiked(ConflictError):
    code = "already_liked"


class AlreadyBookmarked(ConflictError):
    code = "already_bookmarked"


class DuplicateVote(ConflictError):
    code = "duplicate_vote"


class InvalidState(ConflictError):
    code = "invalid_state"


# ---------------------------------------------------------------------------
# Rule violations, rejected before any mutation
# ---------------------------------------------------------------------------

class RuleViolation(BoardException):
    code = "rule_violation"
    status_code = 400


class SelfVote(RuleViolation):
    code = "self_vote"


class SelfLike(RuleViolation):
    code = "self_like"


class NestingTooDeep(RuleViolation):
    code = "nesting_too_deep"


class CannotDelete(RuleViolation):
    code = "cannot_delete"
    status_code = 409
