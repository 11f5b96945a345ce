import asyncio

from fastapi.testclient import TestClient
from sqlmodel import select

from clientdesk.core.limiter import limiter
from clientdesk.main import create_app
from clientdesk.models.user import User


def is_anonymous(client) -> bool:
    r = client.get("/clients", follow_redirects=False)
    return r.status_code == 303 and r.headers["location"] == "/login"


def test_register_redirects_to_login(register):
    r = register()
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_register_rejects_same_email(register):
    assert register().status_code == 303
    r = register(username="alice2", email="alice@example.com")
    assert r.status_code == 400
    assert "already exists" in r.text


def test_register_rejects_same_username(register):
    assert register().status_code == 303
    r = register(username="alice", email="other@example.com")
    assert r.status_code == 400
    assert "already exists" in r.text


def test_register_accepts_distinct_users(register):
    assert register().status_code == 303
    assert register(username="bob", email="bob@example.com").status_code == 303


def test_password_is_stored_hashed(app, register):
    assert register().status_code == 303

    async def fetch():
        async with app.state.async_session_maker() as session:
            return (await session.exec(select(User))).one()

    user = asyncio.run(fetch())
    assert user.hashed_password.startswith("$argon2")


def test_login_unknown_email_is_not_found(client, register, login):
    register()
    r = login(email="nobody@example.com")
    assert r.status_code == 404
    assert "User not found" in r.text
    assert is_anonymous(client)


def test_login_wrong_password_is_unauthorized(client, register, login):
    register()
    r = login(password="wrong password")
    assert r.status_code == 401
    assert "Invalid credentials" in r.text
    assert is_anonymous(client)


def test_login_establishes_session(client, register, login):
    register()
    r = login()
    assert r.status_code == 303
    assert r.headers["location"] == "/clients"
    assert client.get("/clients").status_code == 200


def test_session_holds_projection_only(app, client, register, login):
    register()
    login()
    store = app.state.session_authority.store
    assert store.size == 1
    (entry,) = store._data.values()
    assert set(entry.value) == {"id", "username", "email"}
    assert entry.value["username"] == "alice"


def test_no_cookie_before_login(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "set-cookie" not in r.headers


def test_logout_destroys_session(app, auth_client):
    assert auth_client.get("/clients").status_code == 200
    r = auth_client.get("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert app.state.session_authority.store.size == 0
    assert is_anonymous(auth_client)


def test_logout_without_session_succeeds(client):
    r = client.get("/logout", follow_redirects=False)
    assert r.status_code == 303


def test_old_cookie_is_rejected_after_logout(client, register, login):
    register()
    login()
    cookie = client.cookies.get("clientdesk_session")
    client.get("/logout")
    assert not client.cookies.get("clientdesk_session")
    r = client.get(
        "/clients",
        headers={"cookie": f"clientdesk_session={cookie}"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_expired_server_entry_means_anonymous(app, auth_client):
    app.state.session_authority.store.clear()
    assert is_anonymous(auth_client)


def test_login_rotates_session_id(app, client, register, login):
    register()
    login()
    first = set(app.state.session_authority.store._data)
    login()
    second = set(app.state.session_authority.store._data)
    assert len(second) == 1
    assert first != second


def test_login_limit_comes_from_app_settings(settings):
    limiter.reset()
    app = create_app(settings.model_copy(update={"login_rate_limit": "2/minute"}))
    with TestClient(app) as client:
        codes = [
            client.post(
                "/login",
                data={"email": "nobody@example.com", "password": "x"},
                follow_redirects=False,
            ).status_code
            for _ in range(3)
        ]
        r = client.post("/login", data={"email": "nobody@example.com", "password": "x"})
    assert codes == [404, 404, 429]
    assert r.status_code == 429
    assert "Too many login attempts" in r.text
