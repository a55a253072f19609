"""Shared fixtures: offscreen QApplication, isolated settings, fake HTTP."""
from __future__ import annotations

import json
import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import httpx
import pytest
from PyQt6.QtWidgets import QApplication

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import settings
from canvas.items import _CachedCanvasSettings


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def settings_manager(tmp_path, monkeypatch):
    """Point the settings singleton at a temporary directory."""
    monkeypatch.delenv(settings.SERVER_URL_ENV, raising=False)
    sm = settings.SettingsManager(settings_dir=tmp_path / "config")
    settings.set_settings(sm)
    _CachedCanvasSettings.reset()
    yield sm
    settings.set_settings(None)
    _CachedCanvasSettings.reset()


class FakeServer:
    """In-memory stand-in for the annotation and auth services.

    Records every request; ``fail_with`` makes the next requests return
    that status code.
    """

    def __init__(self):
        self.sets = []
        self.requests = []
        self.fail_with = None
        self.fail_message = ""
        self._next_id = 1

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            body = {"message": self.fail_message} if self.fail_message else {}
            return httpx.Response(self.fail_with, json=body)

        path = request.url.path
        if path == "/api/annotations" and request.method == "GET":
            return httpx.Response(200, json=self.sets)
        if path == "/api/annotations" and request.method == "POST":
            body = _json(request)
            new = {"_id": f"set{self._next_id}", "rectangles": body["rectangles"]}
            self._next_id += 1
            self.sets.append(new)
            return httpx.Response(201, json=new)
        if path.startswith("/api/annotations/") and request.method == "PUT":
            set_id = path.rsplit("/", 1)[-1]
            for s in self.sets:
                if s["_id"] == set_id:
                    s["rectangles"] = _json(request)["rectangles"]
                    return httpx.Response(200, json=s)
            return httpx.Response(404, json={"message": "Not found"})
        if path in ("/api/auth/login", "/api/auth/register"):
            body = _json(request)
            return httpx.Response(200, json={"token": "tok-" + body["username"], "user": {"username": body["username"]}})
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _json(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture()
def fake_server():
    return FakeServer()
