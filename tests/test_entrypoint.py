"""Tests for ``python -m referral_api``."""

from __future__ import annotations

import logging

import pytest

import referral_api.__main__ as entrypoint


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Stub out .env loading, logging setup and the server so main() returns immediately."""
    recorded: dict = {"basicConfig": [], "run": []}

    monkeypatch.setattr(entrypoint, "load_dotenv", lambda: None)
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: recorded["basicConfig"].append(kw))
    monkeypatch.setattr(
        entrypoint.uvicorn, "run", lambda app, **kw: recorded["run"].append((app, kw))
    )
    return recorded


class TestMain:
    def test_missing_database_url_exits_1(
        self, calls: dict, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DB_URL", raising=False)

        with caplog.at_level(logging.ERROR):
            assert entrypoint.main() == 1

        assert calls["run"] == []
        assert "Missing DATABASE_URL" in caplog.text

    def test_db_url_alias_is_enough(self, calls: dict, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_URL", "sqlite://")

        assert entrypoint.main() == 0
        assert len(calls["run"]) == 1

    def test_starts_the_single_app(self, calls: dict, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite://")

        assert entrypoint.main() == 0

        (app, kwargs), = calls["run"]
        assert app == "referral_api.main:app"
        assert set(kwargs) == {"host", "port"}

    def test_leaves_logging_to_the_app(self, calls: dict, monkeypatch: pytest.MonkeyPatch) -> None:
        """Configuring the root logger here would make the app's LOG_LEVEL setup a no-op."""
        monkeypatch.setenv("DATABASE_URL", "sqlite://")

        entrypoint.main()

        assert calls["basicConfig"] == []


class TestAppModule:
    def test_app_module_does_not_run_a_server(self) -> None:
        import referral_api.main as app_module

        assert not hasattr(app_module, "uvicorn")
