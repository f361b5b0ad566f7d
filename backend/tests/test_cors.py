import importlib
import os
import sys

import pytest


def _app_modules():
    return {name: mod for name, mod in sys.modules.items() if name == "app" or name.startswith("app.")}


@pytest.fixture(autouse=True)
def app_import_isolation(monkeypatch):
    app_path = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    saved = _app_modules()
    for name in saved:
        sys.modules.pop(name, None)
    monkeypatch.syspath_prepend(app_path)
    try:
        yield
    finally:
        for name in list(_app_modules()):
            sys.modules.pop(name, None)
        sys.modules.update(saved)


def test_rejects_wildcard_origin(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")
    monkeypatch.setenv("ALLOW_CREDENTIALS", "true")
    with pytest.raises(ValueError):
        importlib.import_module("app.main")


def test_requires_allowed_origins(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("ALLOW_CREDENTIALS", raising=False)
    with pytest.raises(ValueError):
        importlib.import_module("app.main")


def test_requires_strong_jwt_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "short")
    with pytest.raises(RuntimeError):
        importlib.import_module("app.main")
