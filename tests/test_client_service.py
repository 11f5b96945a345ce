import itertools

import pytest
from sqlalchemy import text
from sqlmodel import select

from clientdesk.core.errors import InvalidQueryError, PersistenceError, RecordNotFoundError
from clientdesk.models.client import Client
from clientdesk.schemas.client import ClientForm, ClientQueryParams
from clientdesk.services.client_service import ClientService

# Seeded statuses: 1 New, 2 Active, 3 Inactive
FIXTURE_CLIENTS = [
    ("Jane Doe", "555-1000", 1),
    ("john smith", "555-2000", 2),
    ("Alice Jones", "444-1234", None),
    ("Bob Johnson", "555-1234", 3),
    ("Zed 100%", "999-0000", 2),
]
STATUS_NAMES = {1: "New", 2: "Active", 3: "Inactive"}


async def seed(service):
    for full_name, phone, status_id in FIXTURE_CLIENTS:
        await service.create_client(
            ClientForm(full_name=full_name, phone_number=phone, status_id=status_id)
        )


def list_ids(run_db, **params):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        rows = await service.list_clients(ClientQueryParams(**params))
        return [row.id for row in rows]

    return run_db(scenario)


def expected_ids(search=None, status=None, phone=None):
    ids = []
    for client_id, (full_name, client_phone, status_id) in enumerate(FIXTURE_CLIENTS, start=1):
        if search and search.strip() and search.strip().lower() not in full_name.lower():
            continue
        if status and status != "all" and status_id != int(status):
            continue
        if phone and phone.strip() and phone.strip().lower() not in client_phone.lower():
            continue
        ids.append(client_id)
    return ids


def test_listing_without_params_is_ordered_by_id(run_db):
    assert list_ids(run_db) == [1, 2, 3, 4, 5]


def test_filters_are_conjunctive_for_every_combination(run_db):
    combinations = list(
        itertools.product([None, "", "jo", "DOE", "  smith "], [None, "all", "1", "2"], [None, "555", "1234"])
    )

    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        results = {}
        for search, status, phone in combinations:
            rows = await service.list_clients(
                ClientQueryParams(search=search, status=status, phone=phone)
            )
            results[(search, status, phone)] = [row.id for row in rows]
        return results

    results = run_db(scenario)
    for combo, ids in results.items():
        assert ids == expected_ids(*combo), combo


def test_search_is_case_insensitive_substring(run_db):
    assert list_ids(run_db, search="JO") == [2, 3, 4]


def test_like_wildcards_match_literally(run_db):
    assert list_ids(run_db, search="%") == [5]
    assert list_ids(run_db, phone="_") == []


def test_sort_by_status_uses_status_name(run_db):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        by_name = await service.list_clients(ClientQueryParams(sort_by="status"))
        by_fk = await service.list_clients(ClientQueryParams(sort_by="status_id"))
        return by_name, by_fk

    by_name, by_fk = run_db(scenario)
    # Active(2, 5) < Inactive(4) < New(1)
    assert [r.id for r in by_name if r.status_name] == [2, 5, 4, 1]
    # New(1) < Active(2, 5) < Inactive(4)
    assert [r.id for r in by_fk if r.status_id] == [1, 2, 5, 4]


def test_sort_by_status_descending(run_db):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        return await service.list_clients(ClientQueryParams(sort_by="status", sort_order="desc"))

    rows = run_db(scenario)
    assert [r.id for r in rows if r.status_name] == [1, 4, 2, 5]


def test_sort_by_column_descending(run_db):
    names = [name for name, _, _ in FIXTURE_CLIENTS]
    expected = [names.index(name) + 1 for name in sorted(names, reverse=True)]
    assert list_ids(run_db, sort_by="full_name", sort_order="desc") == expected


def test_rows_carry_status_name(run_db):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        return await service.list_clients(ClientQueryParams())

    rows = run_db(scenario)
    for row, (_, _, status_id) in zip(rows, FIXTURE_CLIENTS):
        assert row.status_name == STATUS_NAMES.get(status_id)


def test_invalid_sort_key_raises(run_db):
    with pytest.raises(InvalidQueryError):
        list_ids(run_db, sort_by="nope")


def test_statuses_are_ordered_by_id(run_db):
    async def scenario(session):
        return [s.name for s in await ClientService(session).list_statuses()]

    assert run_db(scenario) == ["New", "Active", "Inactive"]


def test_empty_status_is_stored_as_null(run_db):
    async def scenario(session):
        service = ClientService(session)
        created = await service.create_client(
            ClientForm(full_name="No Status", phone_number="1", status_id="")
        )
        fetched = await service.get_client(created.id)
        raw = (await session.exec(text("SELECT status_id FROM clients"))).all()
        return fetched, raw

    fetched, raw = run_db(scenario)
    assert fetched.status_id is None
    assert raw == [(None,)]


def test_update_normalizes_status_and_targets_one_record(run_db):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        await service.update_client(
            1, ClientForm(full_name="Jane Roe", phone_number="555-1001", status_id="")
        )
        return (await session.exec(select(Client).order_by(Client.id))).all()

    clients = run_db(scenario)
    assert (clients[0].full_name, clients[0].phone_number, clients[0].status_id) == (
        "Jane Roe",
        "555-1001",
        None,
    )
    assert [c.full_name for c in clients[1:]] == [name for name, _, _ in FIXTURE_CLIENTS[1:]]


def test_delete_removes_only_that_record(run_db):
    async def scenario(session):
        service = ClientService(session)
        await seed(service)
        await service.delete_client(3)
        return [row.id for row in await service.list_clients(ClientQueryParams())]

    assert run_db(scenario) == [1, 2, 4, 5]


@pytest.mark.parametrize("operation", ["get", "update", "delete"])
def test_missing_record_is_reported(run_db, operation):
    async def scenario(session):
        service = ClientService(session)
        if operation == "get":
            await service.get_client(42)
        elif operation == "update":
            await service.update_client(42, ClientForm(full_name="x"))
        else:
            await service.delete_client(42)

    with pytest.raises(RecordNotFoundError, match="Client 42 not found"):
        run_db(scenario)


def test_unknown_status_reference_is_a_persistence_error(run_db):
    async def scenario(session):
        await ClientService(session).create_client(ClientForm(full_name="Ghost", status_id=99))

    with pytest.raises(PersistenceError, match="FOREIGN KEY"):
        run_db(scenario)


def test_store_failure_carries_message(run_db):
    async def scenario(session):
        await session.exec(text("DROP TABLE clients"))
        await session.commit()
        await ClientService(session).list_clients(ClientQueryParams())

    with pytest.raises(PersistenceError, match="no such table"):
        run_db(scenario)


@pytest.mark.parametrize(
    "params, expected",
    [
        ({"search": "Иван"}, ["Иван Петров"]),
        ({"search": "иван"}, ["Иван Петров"]),
        ({"search": "ПЕТРОВ"}, ["Иван Петров"]),
        ({"search": "ёлкин"}, ["Пётр Ёлкин"]),
        ({"search": "straße"}, ["Anna Straße"]),
        ({"phone": "ДОБ"}, ["Пётр Ёлкин"]),
        ({"search": "ив", "phone": "доб"}, []),
    ],
)
def test_non_ascii_filters_are_case_insensitive(run_db, params, expected):
    async def scenario(session):
        service = ClientService(session)
        await service.create_client(ClientForm(full_name="Иван Петров", phone_number="+7 900"))
        await service.create_client(ClientForm(full_name="Пётр Ёлкин", phone_number="12 доб. 3"))
        await service.create_client(ClientForm(full_name="Anna Straße", phone_number="0049"))
        rows = await service.list_clients(ClientQueryParams(**params))
        return [row.full_name for row in rows]

    assert run_db(scenario) == expected
