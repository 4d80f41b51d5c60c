import pytest
from pydantic import ValidationError

from cutdapper.core.config import Settings


class TestSettings:
    def test_given_no_environment_when_loading_then_uses_pagination_defaults(self, monkeypatch):
        for name in ("DEFAULT_PAGE_SIZE", "MIN_PAGE_SIZE", "MAX_PAGE_SIZE", "SEARCH_WORKERS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert (settings.min_page_size, settings.default_page_size, settings.max_page_size) == (1, 5, 100)
        assert settings.search_workers == 6
        assert settings.facet_drill_sideways is False

    def test_given_environment_overrides_when_loading_then_reads_them(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///./other.db")
        monkeypatch.setenv("FACET_DRILL_SIDEWAYS", "true")

        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///./other.db"
        assert settings.facet_drill_sideways is True

    def test_given_default_above_max_when_loading_then_fails(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_page_size=200, max_page_size=100)


class TestLogging:
    def test_given_level_when_configuring_then_package_logger_uses_it(self):
        import logging
        from cutdapper.core.logging_config import configure_logging

        configure_logging("debug")

        assert logging.getLogger("cutdapper").level == logging.DEBUG
        configure_logging("INFO")
