"""
NoteKeeper Backend: Configuration Tests
========================================

What:  Tests for Settings defaults, validation and the startup check.
How:   Settings instances built from monkeypatched environment variables;
       the application lifespan entered directly for the startup check.
"""

import pytest
from pydantic import ValidationError

from notekeeper import database, main
from notekeeper.config import Settings
from notekeeper.exceptions import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DATABASE_URL", "LOG_LEVEL", "CORS_ORIGINS", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_pool_defaults(clean_env):
    settings = Settings(_env_file=None)

    assert settings.db_pool_size == 10
    assert settings.db_max_overflow == 0
    assert settings.db_pool_recycle == 60
    assert settings.db_pool_pre_ping is True
    assert settings.debug is False


def test_missing_database_url_fails_validation(clean_env):
    settings = Settings(_env_file=None)

    with pytest.raises(ConfigurationError) as exc_info:
        settings.validate_required()

    assert "DATABASE_URL" in exc_info.value.message


def test_database_url_from_environment(clean_env):
    clean_env.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/notes")

    settings = Settings(_env_file=None)

    settings.validate_required()
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/notes"


def test_log_level_is_normalized(clean_env):
    clean_env.setenv("LOG_LEVEL", "debug")
    assert Settings(_env_file=None).log_level == "DEBUG"


def test_invalid_log_level_is_rejected(clean_env):
    clean_env.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_cors_origins_are_split(clean_env):
    clean_env.setenv("CORS_ORIGINS", "http://a.test, http://b.test,,")
    assert Settings(_env_file=None).cors_origins_list == ["http://a.test", "http://b.test"]


class TestLifespan:
    """Startup refuses to run without a database URL."""

    @pytest.fixture(autouse=True)
    def quiet_logging(self, monkeypatch):
        # setup_logging() reconfigures the root logger
        monkeypatch.setattr(main, "setup_logging", lambda: None)

    @pytest.mark.asyncio
    async def test_missing_database_url_aborts_startup(self, monkeypatch):
        monkeypatch.setattr(main.settings, "database_url", None)

        with pytest.raises(ConfigurationError):
            async with main.lifespan(main.create_app()):
                pass

        with pytest.raises(RuntimeError):
            database.get_engine()

    @pytest.mark.asyncio
    async def test_startup_and_shutdown_manage_the_engine(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            main.settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'startup.db'}"
        )

        async with main.lifespan(main.create_app()):
            assert database.get_engine() is not None

        with pytest.raises(RuntimeError):
            database.get_engine()
