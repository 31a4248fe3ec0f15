"""
Persisted state for the update manager.

The state file (~/.config/update-manager/config.json by default) records:
- which providers are enabled
- package ids the user chose to ignore
- the version last installed through this tool, per package id
- when updates were last checked

Example file:

    {
      "providers": {"winget": {"enabled": true}, "scoop": {"enabled": false}},
      "ignoredPackages": ["Google.GooglePlayGames"],
      "installedVersions": {"Microsoft.Teams": "24.1.0"},
      "lastCheckTimestamp": "2024-01-01T00:00:00+00:00"
    }

Unknown provider ids in a loaded file are kept, so a newer release can add
providers without an older one dropping their settings. A missing, unreadable
or invalid file loads as the default state.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from update_manager.config import DEFAULT_STATE_PATH
from update_manager.errors import StateError
from update_manager.logging import get_logger

logger = get_logger(__name__)


class ProviderSetting(BaseModel):
    """Per-provider user setting."""

    enabled: bool = Field(..., description="Whether the provider takes part in checks")


class PersistedState(BaseModel):
    """
    Contents of the state file.

    Attributes:
        providers: Provider id to setting. May contain ids this release does
            not know about.
        ignored_packages: Package ids excluded from check results.
        installed_versions: Package id to the version last installed by us.
        last_check: ISO 8601 timestamp of the last completed check.
    """

    model_config = ConfigDict(populate_by_name=True)

    providers: dict[str, ProviderSetting] = Field(default_factory=dict)
    ignored_packages: list[str] = Field(
        default_factory=list,
        alias="ignoredPackages",
    )
    installed_versions: dict[str, str] = Field(
        default_factory=dict,
        alias="installedVersions",
    )
    last_check: str | None = Field(
        default=None,
        alias="lastCheckTimestamp",
    )

    def enabled_providers(self) -> list[str]:
        """Return the ids of enabled providers, in file order."""
        return [pid for pid, setting in self.providers.items() if setting.enabled]


class StateStore:
    """
    Loads and saves PersistedState with atomic writes.

    Every mutator reloads the file, applies one change and saves, so state
    written by an earlier command in the same run is never clobbered.

    Attributes:
        path: Location of the state file.
        defaults: Provider id to default enabled flag, used to fill in
            providers missing from the file.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        defaults: Mapping[str, bool] | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            path: State file path. Defaults to ~/.config/update-manager/config.json.
            defaults: Default enabled flag per known provider id.
        """
        self.path = Path(path) if path else DEFAULT_STATE_PATH
        self.defaults = dict(defaults or {})

    def default_state(self) -> PersistedState:
        """Return a fresh state with every known provider at its default."""
        return PersistedState(
            providers={
                pid: ProviderSetting(enabled=enabled)
                for pid, enabled in self.defaults.items()
            }
        )

    def load(self) -> PersistedState:
        """
        Load the state file.

        Returns:
            The stored state merged over the defaults, or the default state
            if the file is missing or malformed.
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            state = PersistedState.model_validate(data)
        except FileNotFoundError:
            return self.default_state()
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(
                "State file unreadable, using defaults",
                extra={"path": str(self.path), "error": str(e)},
            )
            return self.default_state()

        providers = self.default_state().providers
        providers.update(state.providers)
        state.providers = providers
        return state

    def save(self, state: PersistedState) -> None:
        """
        Write the state file atomically (temp file, fsync, replace).

        Raises:
            StateError: If the file cannot be written.
        """
        data = state.model_dump(by_alias=True, mode="json")
        temp_path = self.path.with_suffix(".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            raise StateError(
                f"Failed to write state file: {e}",
                details={"path": str(self.path)},
            ) from e

        logger.debug("Saved state", extra={"path": str(self.path)})

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def add_ignored(self, package_id: str) -> None:
        """Add a package id to the ignore list (no-op if already present)."""
        state = self.load()
        if package_id not in state.ignored_packages:
            state.ignored_packages.append(package_id)
            self.save(state)

    def remove_ignored(self, package_id: str) -> bool:
        """
        Remove a package id from the ignore list.

        Returns:
            True if the id was ignored before the call.
        """
        state = self.load()
        if package_id not in state.ignored_packages:
            return False
        state.ignored_packages.remove(package_id)
        self.save(state)
        return True

    def set_installed_version(self, package_id: str, version: str) -> None:
        """Record the version just installed for a package."""
        state = self.load()
        state.installed_versions[package_id] = version
        self.save(state)

    def remove_installed_version(self, package_id: str) -> bool:
        """
        Forget the recorded installed version of a package.

        Returns:
            True if a version was recorded.
        """
        state = self.load()
        if state.installed_versions.pop(package_id, None) is None:
            return False
        self.save(state)
        return True

    def set_provider_enabled(self, provider_id: str, enabled: bool) -> None:
        """Enable or disable a provider."""
        state = self.load()
        state.providers[provider_id] = ProviderSetting(enabled=enabled)
        self.save(state)

    def touch_last_check(self) -> str:
        """Stamp the last-check time with the current UTC time and return it."""
        state = self.load()
        state.last_check = datetime.now(UTC).isoformat()
        self.save(state)
        return state.last_check

    def enabled_providers(self) -> list[str]:
        """Return the ids of enabled providers."""
        return self.load().enabled_providers()
