"""Tests for the server entry point."""

import reviewflow.__main__ as entry
from reviewflow.core.config import Settings


def test_main_runs_uvicorn_with_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(entry.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(
        entry, "get_settings",
        lambda: Settings(host="0.0.0.0", port=9001, debug=True, log_level="WARNING"),
    )

    entry.main()

    assert calls == [(
        "reviewflow.api.main:app",
        {"host": "0.0.0.0", "port": 9001, "reload": True, "log_level": "warning"},
    )]
