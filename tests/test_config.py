import pytest

from clientdesk.core.config import Settings, check_secret_key
from clientdesk.main import create_app


@pytest.mark.parametrize("secret", ["", "   ", "changeme", "CHANGEME", "secret", "your-secret-key"])
def test_placeholder_secrets_are_refused(secret):
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        check_secret_key(Settings(secret_key=secret))


def test_real_secret_is_accepted():
    check_secret_key(Settings(secret_key="9b1f0c0e5a7d4e3c"))


def test_app_refuses_to_start_without_secret(tmp_path):
    settings = Settings(
        secret_key="",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'x.db'}",
    )
    with pytest.raises(RuntimeError):
        create_app(settings)


def test_defaults(monkeypatch):
    for name in ("PORT", "HOST", "APP_ENV", "SESSION_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(secret_key="x" * 16)
    assert settings.port == 3000
    assert settings.session_ttl_seconds == 28800
    assert not settings.is_production


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("APP_ENV", "production")
    settings = Settings(secret_key="x" * 16)
    assert settings.port == 8080
    assert settings.is_production


def test_settings_do_not_read_dotenv_themselves(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("PORT=9999\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PORT", raising=False)
    assert Settings(secret_key="x" * 16).port == 3000
