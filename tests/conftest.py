import pytest


@pytest.fixture(autouse=True)
def plain_console(monkeypatch):
    # keep rich from emitting ANSI codes into captured output
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.setenv("TERM", "dumb")
