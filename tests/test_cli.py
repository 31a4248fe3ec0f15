"""
Tests for the command line interface.

Tests cover:
- Argument parsing
- Ignore list and provider toggling commands
- check and update against stub providers
- Exit codes for usage errors, failures and interrupts
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from update_manager.cli import EXIT_CANCELLED, EXIT_FAILED, EXIT_OK, EXIT_USAGE, build_parser, main
from update_manager.models import PackageStatus, ProviderInfo, UpdateRecord, UpdateResult
from update_manager.providers import ProviderRegistry


class StubProvider:
    """Provider whose operations are AsyncMocks."""

    def __init__(self, provider_id: str, records: list[UpdateRecord] | None = None, *, default_enabled: bool = True) -> None:
        self.info = ProviderInfo(
            id=provider_id,
            display_name=provider_id.title(),
            default_enabled=default_enabled,
        )
        self.is_available = AsyncMock(return_value=True)
        self.check_updates = AsyncMock(return_value=records or [])
        self.update_package = AsyncMock(return_value=True)
        self.update_all = AsyncMock(return_value=UpdateResult())


def npm_record(package_id: str = "typescript", new: str = "5.3.0") -> UpdateRecord:
    return UpdateRecord(
        id=package_id,
        name=package_id,
        current_version="5.2.0",
        new_version=new,
        status=PackageStatus.AVAILABLE,
        provider_id="npm",
    )


@pytest.fixture
def npm() -> StubProvider:
    return StubProvider("npm", [npm_record()])


@pytest.fixture
def scoop() -> StubProvider:
    return StubProvider("scoop", default_enabled=False)


@pytest.fixture(autouse=True)
def cli_env(
    state_path: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    npm: StubProvider,
    scoop: StubProvider,
):
    """Point the CLI at a temp state file and a stub registry."""
    monkeypatch.setattr("update_manager.config.DEFAULT_SETTINGS_PATH", tmp_path / "absent.yml")
    monkeypatch.setenv("UPDATE_MANAGER_STATE__PATH", str(state_path))

    registry = ProviderRegistry()
    registry.register(npm)  # type: ignore[arg-type]
    registry.register(scoop)  # type: ignore[arg-type]

    with patch("update_manager.cli.build_default_registry", return_value=registry):
        yield registry


def read_state(state_path: Path) -> dict:
    return json.loads(state_path.read_text(encoding="utf-8"))


# =============================================================================
# Parser Tests
# =============================================================================


class TestParser:
    """Tests for build_parser."""

    def test_update_flags(self) -> None:
        """Test update subcommand flags."""
        args = build_parser().parse_args(["update", "winget", "-y", "--force", "--interactive"])

        assert args.command == "update"
        assert args.provider == "winget"
        assert args.yes is True
        assert args.force is True
        assert args.interactive is True
        assert args.install_helper is False

    def test_command_required(self) -> None:
        """Test that a subcommand is mandatory."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# =============================================================================
# State Command Tests
# =============================================================================


class TestStateCommands:
    """Tests for ignore, unignore, ignored and providers."""

    def test_ignore_and_list(self, state_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test ignoring a package and listing it."""
        assert main(["ignore", "Google.GooglePlayGames"]) == EXIT_OK
        assert read_state(state_path)["ignoredPackages"] == ["Google.GooglePlayGames"]

        capsys.readouterr()
        assert main(["ignored"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == "Google.GooglePlayGames"

    def test_unignore(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test unignoring reports whether the id was ignored."""
        main(["ignore", "x"])

        assert main(["unignore", "x"]) == EXIT_OK
        assert "No longer ignoring x" in capsys.readouterr().out
        main(["unignore", "x"])
        assert "x was not ignored" in capsys.readouterr().out

    def test_providers_listing(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the provider list shows default enabled flags."""
        assert main(["providers"]) == EXIT_OK

        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("[x] npm")
        assert out[1].startswith("[ ] scoop")

    def test_providers_enable(self, state_path: Path) -> None:
        """Test enabling a provider writes the state file."""
        assert main(["providers", "enable", "scoop"]) == EXIT_OK

        assert read_state(state_path)["providers"]["scoop"] == {"enabled": True}

    def test_providers_unknown_id(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test an unknown provider id is a usage error."""
        assert main(["providers", "disable", "nope"]) == EXIT_USAGE
        assert "Unknown provider: nope" in capsys.readouterr().err

    def test_providers_action_without_id(self) -> None:
        """Test enable without an id is a usage error."""
        assert main(["providers", "enable"]) == EXIT_USAGE


# =============================================================================
# Check and Update Tests
# =============================================================================


class TestCheckAndUpdate:
    """Tests for check and update."""

    def test_check_lists_records(
        self, state_path: Path, scoop: StubProvider, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test check prints records of enabled providers and stamps the time."""
        assert main(["check"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "Npm (1)" in out
        assert "typescript [typescript] 5.2.0 -> 5.3.0" in out
        scoop.check_updates.assert_not_called()
        assert read_state(state_path)["lastCheckTimestamp"]

    def test_check_ignored_package(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test ignored packages are not listed."""
        main(["ignore", "typescript"])
        capsys.readouterr()

        main(["check"])

        assert "Everything is up to date." in capsys.readouterr().out

    def test_check_named_provider_not_installed(self, npm: StubProvider) -> None:
        """Test checking a provider that is not installed fails."""
        npm.is_available.return_value = False

        assert main(["check", "npm"]) == EXIT_FAILED

    def test_check_unknown_provider(self) -> None:
        """Test checking an unknown provider is a usage error."""
        assert main(["check", "nope"]) == EXIT_USAGE

    def test_update_yes(self, state_path: Path, npm: StubProvider, capsys: pytest.CaptureFixture[str]) -> None:
        """Test update --yes applies and records installed versions."""
        assert main(["update", "--yes"]) == EXIT_OK

        npm.update_package.assert_awaited_once()
        assert read_state(state_path)["installedVersions"] == {"typescript": "5.3.0"}
        assert "1 updated, 0 failed" in capsys.readouterr().out

    def test_update_failure_exit_code(self, npm: StubProvider) -> None:
        """Test a failed update yields exit code 1."""
        npm.update_package.return_value = False

        assert main(["update", "-y"]) == EXIT_FAILED

    def test_update_declined(
        self, npm: StubProvider, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test answering no leaves everything untouched."""
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")

        assert main(["update"]) == EXIT_OK
        npm.update_package.assert_not_called()
        assert "Nothing changed." in capsys.readouterr().out

    def test_update_confirmed(self, npm: StubProvider, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test answering yes applies the updates."""
        monkeypatch.setattr("builtins.input", lambda prompt="": "y")

        assert main(["update"]) == EXIT_OK
        npm.update_package.assert_awaited_once()

    def test_update_nothing_to_do(self, npm: StubProvider) -> None:
        """Test update with no records does not prompt."""
        npm.check_updates.return_value = []

        assert main(["update"]) == EXIT_OK
        npm.update_package.assert_not_called()


# =============================================================================
# Exit Code Tests
# =============================================================================


class TestExitCodes:
    """Tests for main's error handling."""

    def test_missing_config_file(self, tmp_path: Path) -> None:
        """Test a missing --config file is a usage error."""
        assert main(["--config", str(tmp_path / "missing.yml"), "ignored"]) == EXIT_USAGE

    def test_malformed_settings_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test unparsable YAML is a usage error with a one-line message."""
        settings = tmp_path / "settings.yml"
        settings.write_text("logging: [unclosed\n", encoding="utf-8")

        assert main(["--config", str(settings), "ignored"]) == EXIT_USAGE

        err = capsys.readouterr().err
        assert err.startswith("Error: invalid settings file")
        assert len(err.strip().splitlines()) == 1

    def test_invalid_env_value(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test a bad UPDATE_MANAGER_* value is a usage error."""
        monkeypatch.setenv("UPDATE_MANAGER_LOGGING__LEVEL", "loud")

        assert main(["ignored"]) == EXIT_USAGE
        assert "invalid configuration: logging.level" in capsys.readouterr().err

    def test_keyboard_interrupt(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test Ctrl+C exits with 130."""
        with patch("update_manager.cli.run", side_effect=KeyboardInterrupt):
            assert main(["check"]) == EXIT_CANCELLED

        assert "Cancelled" in capsys.readouterr().err
