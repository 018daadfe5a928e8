from patrons_cup.settings import DEFAULT_DATABASE_URL, load_settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://cup:secret@db:5432/cup")
    monkeypatch.setenv("ADMIN_PIN", "2468")
    monkeypatch.setenv("STATUS_POLL_SECONDS", "15")
    settings = load_settings()
    assert settings.database_url == "postgresql://cup:secret@db:5432/cup"
    assert settings.admin_pin == "2468"
    assert settings.timezone == "Africa/Nairobi"
    assert settings.status_poll_seconds == 15


def test_settings_defaults(monkeypatch):
    for key in ("DATABASE_URL", "ADMIN_PIN", "TOURNAMENT_TIMEZONE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STATUS_POLL_SECONDS", "soon")
    settings = load_settings()
    assert settings.database_url == DEFAULT_DATABASE_URL
    assert settings.admin_pin == "1234"
    assert settings.status_poll_seconds == 60
