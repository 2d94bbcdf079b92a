"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from create_cerces.adapters.mock import MockCommandRunner, MockFetcher
from create_cerces.core.services.package_manager.resolver import (
    CachedResolver,
    EnvironmentResolver,
)
from create_cerces.core.use_cases.scaffold import RecordingConsole, ScaffoldOrchestrator

_ISOLATED_VARS = (
    "npm_config_user_agent",
    "CERCES_PACKAGE_MANAGER",
    "CERCES_PACKAGE_MANAGER_VERSION",
    "CERCES_CONFIG",
    "CERCES_LOG_LEVEL",
    "CERCES_LOG_FILE",
    "CERCES_LOG_FILE_LEVEL",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path: Path) -> None:
    """Keep the developer's environment and home config out of every test."""
    for var in _ISOLATED_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def fetcher() -> MockFetcher:
    """Fetcher producing a small cf-workers-like project."""
    return MockFetcher(files={
        "package.json": '{"name": "%%DIR_NAME%%", "scripts": {"dev": "wrangler dev"}}\n',
        "wrangler.jsonc": '{\n  "name": "%%DIR_NAME%%",\n  "main": "src/index.ts"\n}\n',
        "src/index.ts": "export default {}\n",
    })


@pytest.fixture
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def make_orchestrator(runner, fetcher, console):
    """Build an orchestrator wired to the mock adapters.

    ``environ`` feeds the environment resolver (default: empty → npm).
    """

    def _make(environ: dict | None = None, resolver=None) -> ScaffoldOrchestrator:
        return ScaffoldOrchestrator(
            runner=runner,
            fetcher=fetcher,
            resolver=resolver or CachedResolver(EnvironmentResolver(environ=environ or {})),
            console=console,
        )

    return _make
