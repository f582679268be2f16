"""Tests for the uvicorn console entry point."""

from unittest.mock import MagicMock

from app import main


def test_run_serves_app_with_configured_bind(monkeypatch):
    served = MagicMock()
    monkeypatch.setattr(main.uvicorn, "run", served)

    main.run()

    served.assert_called_once_with(
        "app.main:app",
        host=main.settings.host,
        port=main.settings.port,
        log_level=main.settings.log_level.lower(),
    )
