# clientdesk/core/errors.py
"""
Failure signals raised by the services and translated to HTTP by the routes.
"""


class PersistenceError(Exception):
    """The store rejected or failed a read or write. Carries its message."""


class RecordNotFoundError(LookupError):
    pass


class MultipleRecordsError(LookupError):
    pass


class InvalidQueryError(ValueError):
    """Filter/sort parameters that cannot be turned into a query."""


class UserAlreadyExistsError(ValueError):
    pass


class UserNotFoundError(LookupError):
    pass


class InvalidCredentialsError(ValueError):
    pass


class InvalidFormError(ValueError):
    """Submitted form values that do not fit the record's fields."""
