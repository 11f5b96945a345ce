"""
Shared constants for query parameters, sessions and auditing.
Keeps sentinel strings in one place.
"""

from enum import Enum, unique

# Status selector value meaning "no status constraint"
STATUS_ALL = "all"

# Sort key that orders by the joined status name
SORT_BY_STATUS = "status"

DEFAULT_CLIENT_STATUSES = ("New", "Active", "Inactive")


@unique
class SortOrder(str, Enum):
    """Sort directions."""

    ASC = "asc"
    DESC = "desc"


@unique
class Operator(str, Enum):
    """Comparison operators understood by the query builder."""

    EQ = "eq"
    ICONTAINS = "icontains"


@unique
class AuditAction(str, Enum):
    """Actions written to the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
