"""Shared test fixtures for scwcli.

Provides isolated config/cache directories, a quiet output manager, a fake
compute API built on :class:`httpx.MockTransport`, and a Typer CLI runner.
These fixtures are discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from scwcli.models import ScwConfig
from scwcli.output import OutputFormat, OutputManager, reset_output, set_output


ENDPOINT = "https://api.example.test/"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet manager before each test and drop it afterwards.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the streams.
    """
    set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and cache files to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path, clears SCW_* environment variables and
    changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    # Force the XDG layout regardless of the host platform.
    monkeypatch.setattr("scwcli.config._is_xdg_platform", lambda: True)

    for var in ["SCW_API_ENDPOINT", "SCW_ORGANIZATION", "SCW_TOKEN"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config() -> ScwConfig:
    """A configuration pointing at the fake API endpoint."""
    return ScwConfig(api_endpoint=ENDPOINT, organization="org-1", token="tok-1")


# ---------------------------------------------------------------------------
# Fake compute API
# ---------------------------------------------------------------------------


class FakeAPI:
    """A tiny in-memory compute API served through :class:`httpx.MockTransport`.

    Records every request in :attr:`requests`. Set :attr:`unreachable` to
    make every request fail with a connection error.
    """

    def __init__(self) -> None:
        self.resources: dict[str, list[dict[str, Any]]] = {
            "servers": [],
            "images": [],
            "snapshots": [],
            "bootscripts": [],
        }
        self.requests: list[httpx.Request] = []
        self.unreachable = False
        self.override: Optional[Callable[[httpx.Request], Optional[httpx.Response]]] = None

    def calls(self, method: str, path: str) -> int:
        return sum(
            1 for r in self.requests if r.method == method and r.url.path == path
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.override is not None:
            response = self.override(request)
            if response is not None:
                return response

        parts = [p for p in request.url.path.split("/") if p]
        if request.method == "GET" and len(parts) == 1 and parts[0] in self.resources:
            items = self.resources[parts[0]]
            state = request.url.params.get("state")
            if state:
                items = [i for i in items if i.get("state") == state]
            return httpx.Response(200, json={parts[0]: items})
        if request.method == "GET" and len(parts) == 2 and parts[0] in self.resources:
            for item in self.resources[parts[0]]:
                if item["id"] == parts[1]:
                    return httpx.Response(200, json={parts[0][:-1]: item})
            return httpx.Response(
                404, json={"message": f"{parts[0][:-1]} not found", "type": "unknown_resource"}
            )
        if request.method == "POST" and parts == ["servers"]:
            body = json.loads(request.content)
            server = {"id": f"new-{len(self.resources['servers'])}", "name": body["name"], "state": "stopped"}
            self.resources["servers"].append(server)
            return httpx.Response(201, json={"server": server})
        if request.method == "POST" and len(parts) == 3 and parts[2] == "action":
            return httpx.Response(202, json={"task": {"id": "task-1"}})
        return httpx.Response(404, json={"message": "not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeAPI:
    api = FakeAPI()
    api.resources["servers"] = [
        {"id": "abc", "name": "web-1", "state": "running"},
        {"id": "def", "name": "db-1", "state": "stopped"},
    ]
    return api


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
