"""Shared test fixtures for pcl."""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from pcl.config import Settings
from pcl.core.config_store import ConfigStore
from pcl.models.artifacts import BuildArtifact
from pcl.models.assertions import PendingAssertion
from pcl.models.auth import Credential
from pcl.models.config import PersistedConfig

AUTH_URL = "https://auth.test/api/v1/cli/auth"
DA_URL = "https://da.test"
DAPP_URL = "https://dapp.test/api/v1"


# ---------------------------------------------------------------------------
# Fake remote services
# ---------------------------------------------------------------------------


class FakeService:
    """Routes ``httpx`` requests to scripted answers and records them.

    Each route holds a queue of answers.  An answer is ``(status, body)``,
    a callable taking the request, or an exception to raise.  The last
    answer of a queue repeats forever.  Unrouted requests get a 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, *answers: Any) -> FakeService:
        self._routes.setdefault((method.upper(), path), []).extend(answers)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method.upper() and r.url.path == path
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer(request)
        status, body = answer
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def service() -> FakeService:
    """Provide an empty fake service; tests add their own routes."""
    return FakeService()


# ---------------------------------------------------------------------------
# Settings / state
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temp state dir and the fake service URLs."""
    return Settings(
        config_dir=tmp_path / "pcl-state",
        auth_url=AUTH_URL,
        da_url=DA_URL,
        dapp_url=DAPP_URL,
        auth_poll_interval_seconds=2.0,
        auth_max_network_retries=3,
        auth_backoff_seconds=1.0,
        auth_max_backoff_seconds=4.0,
    )


@pytest.fixture
def store(settings: Settings) -> ConfigStore:
    return ConfigStore(settings.config_path)


@pytest.fixture
def credential() -> Credential:
    return Credential(
        token="test-token",
        refresh_token="test-refresh",
        user_address="0x00000000000000000000000000000000000000aa",
        expires_at=datetime.now(timezone.utc) + timedelta(days=1),
    )


@pytest.fixture
def config(credential: Credential) -> PersistedConfig:
    """An authenticated config with nothing pending."""
    return PersistedConfig(credential=credential)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_pending() -> Callable[..., PendingAssertion]:
    """Factory fixture: build a PendingAssertion with sensible defaults."""

    def _factory(
        name: str = "OwnableAssertion",
        constructor_args: Sequence[str] = (),
        artifact_id: str = "da-0001",
        **overrides: Any,
    ) -> PendingAssertion:
        return PendingAssertion(
            name=name,
            constructor_args=list(constructor_args),
            artifact_id=artifact_id,
            **overrides,
        )

    return _factory


@pytest.fixture
def make_artifact() -> Callable[..., BuildArtifact]:
    """Factory fixture: build a BuildArtifact with sensible defaults."""

    def _factory(
        contract_name: str = "OwnableAssertion",
        inputs: Sequence[dict[str, Any]] = (),
        **overrides: Any,
    ) -> BuildArtifact:
        types = ",".join(p["type"] for p in inputs)
        defaults: dict[str, Any] = {
            "contract_name": contract_name,
            "bytecode": "0x6080604052",
            "flattened_source": f"contract {contract_name} {{}}",
            "constructor_signature": f"constructor({types})",
            "constructor_inputs": list(inputs),
            "compiler_version": "0.8.28",
        }
        defaults.update(overrides)
        return BuildArtifact(**defaults)

    return _factory


# ---------------------------------------------------------------------------
# Build tool
# ---------------------------------------------------------------------------


class ScriptedRunner:
    """Stands in for the build tool: answers commands by their sub-command.

    ``outputs`` maps a key to ``(returncode, stdout, stderr)``.  The key is
    the first token after the binary, or for ``inspect`` the requested
    field (``deployedBytecode``, ``abi``, ``metadata``).
    """

    def __init__(self, outputs: dict[str, tuple[int, str, str]]) -> None:
        self.outputs = outputs
        self.commands: list[list[str]] = []

    def __call__(self, cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
        cmd = list(cmd)
        self.commands.append(cmd)
        key = cmd[1]
        if key == "inspect":
            key = next(t for t in cmd[2:] if t in ("deployedBytecode", "abi", "metadata"))
        code, out, err = self.outputs.get(key, (0, "", ""))
        return subprocess.CompletedProcess(cmd, code, stdout=out, stderr=err)


@pytest.fixture
def assertion_project(tmp_path: Path) -> Path:
    """A minimal assertion project with one source file."""
    root = tmp_path / "my-assertions"
    src = root / "assertions" / "src"
    src.mkdir(parents=True)
    (src / "OwnableAssertion.a.sol").write_text(
        "pragma solidity ^0.8.28;\ncontract OwnableAssertion {}\n", encoding="utf-8"
    )
    return root


@pytest.fixture
def make_runner() -> Callable[..., ScriptedRunner]:
    """Factory fixture: a ScriptedRunner whose default outputs build cleanly."""

    def _factory(abi: str = "[]", **overrides: tuple[int, str, str]) -> ScriptedRunner:
        outputs = {
            "build": (0, "Compiler run successful!", ""),
            "deployedBytecode": (0, "0x6080604052\n", ""),
            "abi": (0, abi, ""),
            "metadata": (0, '{"compiler": {"version": "0.8.28+commit.7893614a"}}', ""),
            "flatten": (0, "// flattened\ncontract OwnableAssertion {}\n", ""),
        }
        outputs.update(overrides)
        return ScriptedRunner(outputs)

    return _factory


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.start = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    @property
    def elapsed(self) -> float:
        return self.now - self.start


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
