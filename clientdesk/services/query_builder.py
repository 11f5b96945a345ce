# clientdesk/services/query_builder.py
"""
Listing query construction for client records.

The filter/sort policy is expressed as plain data (a list of predicates and
one sort spec) by build_client_query(); to_select() is the only place that
knows how that data maps onto SQLAlchemy.
"""
from dataclasses import dataclass, field
from typing import Any, Tuple

from sqlmodel import select

from ..core.constants import SORT_BY_STATUS, STATUS_ALL, Operator, SortOrder
from ..core.errors import InvalidQueryError
from ..db.functions import casefold
from ..models.client import Client, ClientStatus
from ..schemas.client import ClientQueryParams

# LIKE escape character for user-typed substrings
LIKE_ESCAPE = "/"

# Client columns accepted as filter targets and sort keys
CLIENT_COLUMNS = {
    "id": Client.id,
    "full_name": Client.full_name,
    "phone_number": Client.phone_number,
    "status_id": Client.status_id,
}


@dataclass(frozen=True)
class Predicate:
    column: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class SortSpec:
    key: str = "id"
    descending: bool = False


@dataclass(frozen=True)
class ClientQuery:
    predicates: Tuple[Predicate, ...] = ()
    sort: SortSpec = field(default_factory=SortSpec)


def build_client_query(params: ClientQueryParams) -> ClientQuery:
    """
    Translate listing parameters into predicates and a sort spec.

    - search / phone: case-insensitive substring on full_name / phone_number
    - status: exact status_id match unless absent or "all"
    - sort_by: "status" sorts by the joined status name, anything else must
      be a client column; without it the listing is ordered by id ascending
    - sort_order: only "desc" sorts descending

    Raises:
        InvalidQueryError: unknown sort column or non-numeric status id.
    """
    predicates = []

    if params.search:
        predicates.append(Predicate("full_name", Operator.ICONTAINS, params.search))

    if params.status and params.status != STATUS_ALL:
        try:
            status_id = int(params.status)
        except ValueError:
            raise InvalidQueryError(f"invalid status id: {params.status!r}")
        predicates.append(Predicate("status_id", Operator.EQ, status_id))

    if params.phone:
        predicates.append(Predicate("phone_number", Operator.ICONTAINS, params.phone))

    if params.sort_by:
        if params.sort_by != SORT_BY_STATUS and params.sort_by not in CLIENT_COLUMNS:
            raise InvalidQueryError(f"column clients.{params.sort_by} does not exist")
        sort = SortSpec(
            key=params.sort_by,
            descending=params.sort_order == SortOrder.DESC.value,
        )
    else:
        sort = SortSpec()

    return ClientQuery(predicates=tuple(predicates), sort=sort)


def contains_pattern(value: str) -> str:
    """LIKE pattern matching value as a literal substring."""
    for char in (LIKE_ESCAPE, "%", "_"):
        value = value.replace(char, LIKE_ESCAPE + char)
    return f"%{value}%"


def to_select(query: ClientQuery):
    """
    Build the SELECT for a ClientQuery: client columns plus the status name,
    through a LEFT OUTER JOIN so clients without a status are kept.
    """
    statement = (
        select(
            Client.id,
            Client.full_name,
            Client.phone_number,
            Client.status_id,
            ClientStatus.name.label("status_name"),
        )
        .select_from(Client)
        .outerjoin(ClientStatus, Client.status_id == ClientStatus.id)
    )

    for predicate in query.predicates:
        column = CLIENT_COLUMNS[predicate.column]
        if predicate.operator is Operator.EQ:
            statement = statement.where(column == predicate.value)
        elif predicate.operator is Operator.ICONTAINS:
            statement = statement.where(
                casefold(column).like(
                    casefold(contains_pattern(predicate.value)), escape=LIKE_ESCAPE
                )
            )
        else:
            raise InvalidQueryError(f"unsupported operator: {predicate.operator}")

    if query.sort.key == SORT_BY_STATUS:
        sort_column = ClientStatus.name
    else:
        sort_column = CLIENT_COLUMNS[query.sort.key]

    statement = statement.order_by(
        sort_column.desc() if query.sort.descending else sort_column.asc()
    )
    if query.sort.key != "id":
        # Tie-breaker so equal sort values come back in a stable order
        statement = statement.order_by(Client.id.asc())

    return statement
