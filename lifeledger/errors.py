"""
Domain Exceptions

These are the errors callers are expected to handle.
Storage-specific failures live in the storage interface.
"""


class ValidationError(ValueError):
    """
    A mutation would break a record invariant.

    Raised before anything is changed: the record is left exactly
    as it was when the operation was called.
    """
    pass


class NotFoundError(LookupError):
    """An operation referenced a record that does not exist."""
    pass
