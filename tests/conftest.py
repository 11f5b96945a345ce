import asyncio

import pytest
from fastapi.testclient import TestClient

from clientdesk.core.config import Settings
from clientdesk.core.limiter import limiter
from clientdesk.db.engine import build_engine, build_session_maker, create_db_and_tables
from clientdesk.db.init_db import init_db
from clientdesk.main import create_app

TEST_SECRET = "pytest-only-secret-3f9c"
PASSWORD = "correct horse battery"


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        secret_key=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        audit_log_file=str(tmp_path / "audit.log"),
    )


@pytest.fixture()
def app(settings):
    limiter.reset()
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def register(client):
    def _register(username="alice", email="alice@example.com", password=PASSWORD):
        return client.post(
            "/register",
            data={"username": username, "email": email, "password": password},
            follow_redirects=False,
        )

    return _register


@pytest.fixture()
def login(client):
    def _login(email="alice@example.com", password=PASSWORD):
        return client.post(
            "/login", data={"email": email, "password": password}, follow_redirects=False
        )

    return _login


@pytest.fixture()
def auth_client(client, register, login):
    assert register().status_code == 303
    assert login().status_code == 303
    return client


@pytest.fixture()
def run_db(tmp_path):
    """
    Run an async scenario against a fresh, seeded database:
        run_db(lambda session: service_call(session))
    """
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'service.db'}"

    def _run(scenario):
        async def _main():
            engine = build_engine(db_url)
            await create_db_and_tables(engine)
            session_maker = build_session_maker(engine)
            async with session_maker() as session:
                await init_db(session)
            try:
                async with session_maker() as session:
                    return await scenario(session)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    return _run
