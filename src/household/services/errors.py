"""Error types raised by household services."""


class HouseholdError(Exception):
    """Base class for service errors."""


class InvalidInputError(HouseholdError):
    """A required field is missing or empty."""


class DuplicateRecordError(HouseholdError):
    """A uniqueness constraint was violated on create."""


class NotFoundError(HouseholdError):
    """A lookup did not match any record."""


class UserNotFoundError(NotFoundError):
    """No user has the requested username."""


class GroupNotFoundError(NotFoundError):
    """No group has the requested name."""


class InconsistentStateError(NotFoundError):
    """A record found earlier in the same operation vanished before the write."""


class UserDocumentNotFoundError(InconsistentStateError):
    """The user matched by lookup was not matched by the update."""


class GroupDocumentNotFoundError(InconsistentStateError):
    """The group matched by lookup was not matched by the update."""


class StoreError(HouseholdError):
    """The document store failed, timed out, or returned undecodable data."""
