"""
Pytest configuration for the update manager tests.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

import pytest

from update_manager.runner import CommandResult
from update_manager.state import StateStore

# Configure pytest-asyncio mode
pytest_plugins = ["pytest_asyncio"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests that start real subprocesses",
    )


class FakeRunner:
    """
    Stand-in for CommandRunner.

    Responses are registered per argv prefix; the longest matching prefix
    wins. Several responses for one prefix are returned in order, the last
    one repeating. Unmatched commands fail with exit code 1 and no output.
    """

    def __init__(self, available: Sequence[str] = ()) -> None:
        self.available = set(available)
        self.calls: list[list[str]] = []
        self.timeouts: list[float] = []
        self._responses: dict[tuple[str, ...], list[CommandResult]] = {}

    def on(
        self,
        *prefix: str,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        timed_out: bool = False,
    ) -> FakeRunner:
        result = CommandResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            success=exit_code == 0,
            timed_out=timed_out,
        )
        self._responses.setdefault(tuple(prefix), []).append(result)
        return self

    def which(self, command: str) -> bool:
        return command in self.available

    async def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float = 60.0,
        cwd: str | None = None,
    ) -> CommandResult:
        self.calls.append(list(argv))
        self.timeouts.append(timeout)

        matches = [
            prefix
            for prefix in self._responses
            if tuple(argv[: len(prefix)]) == prefix
        ]
        if not matches:
            return CommandResult(exit_code=1, success=False)

        queue = self._responses[max(matches, key=len)]
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def ran(self, *prefix: str) -> int:
        """Count calls whose argv starts with prefix."""
        return sum(1 for call in self.calls if tuple(call[: len(prefix)]) == prefix)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A FakeRunner with no commands on PATH."""
    return FakeRunner()


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Location for a state file inside the test's temp dir."""
    return tmp_path / "state" / "config.json"


@pytest.fixture
def store(state_path: Path) -> StateStore:
    """A StateStore with two known providers, one disabled by default."""
    return StateStore(state_path, defaults={"winget": True, "scoop": False})


@pytest.fixture(autouse=True)
def _cleanup_loggers() -> Iterator[None]:
    """Remove handlers added to the package logger by a test."""
    yield
    logging.getLogger("update_manager").handlers.clear()
