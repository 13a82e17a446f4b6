"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from port_terminator.config import TerminatorSettings, runtime
from port_terminator.platform_selection import Platform, PlatformBackend
from tests.helpers.fake_runner import FakeRunner


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer .env files and PORT_TERMINATOR_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("PORT_TERMINATOR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", ())
    runtime.reset_default_values()
    yield
    runtime.reset_default_values()


@pytest.fixture
def fast_settings() -> TerminatorSettings:
    """Settings with intervals short enough for polling tests."""
    return TerminatorSettings(
        command_timeout_ms=2000,
        command_kill_grace_ms=100,
        graceful_timeout_ms=50,
        force_timeout_ms=30,
        process_poll_interval_ms=5,
        port_poll_interval_ms=5,
        wait_timeout_ms=50,
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def mock_backend(fast_settings) -> PlatformBackend:
    """Backend whose resolver and terminator are AsyncMocks."""
    resolver = MagicMock()
    resolver.find_processes_by_port = AsyncMock(return_value=[])
    resolver.is_port_available = AsyncMock(return_value=True)

    terminator = MagicMock()
    terminator.kill = AsyncMock(return_value=True)
    terminator.send_graceful = AsyncMock()
    terminator.send_forceful = AsyncMock()
    terminator.is_running = AsyncMock(return_value=False)

    return PlatformBackend(Platform.LINUX, resolver, terminator, fast_settings)
