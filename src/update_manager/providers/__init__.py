"""
Provider adapters and the registry that maps provider ids to them.

Example:
    >>> registry = build_default_registry()
    >>> registry.require("winget").info.display_name
    'WinGet'
"""

from __future__ import annotations

from collections.abc import Iterator

from update_manager.config import AppConfig
from update_manager.errors import InvalidArgumentError
from update_manager.providers.base import ElevatingProvider, UpdateProvider
from update_manager.providers.bun import BunProvider
from update_manager.providers.chocolatey import ChocolateyProvider
from update_manager.providers.claude import ClaudeProvider
from update_manager.providers.moonrepo import MoonrepoProvider
from update_manager.providers.npm import NpmProvider
from update_manager.providers.pnpm import PnpmProvider
from update_manager.providers.proto import ProtoProvider
from update_manager.providers.psmodules import PsModulesProvider
from update_manager.providers.scoop import ScoopProvider
from update_manager.providers.winget import WingetProvider
from update_manager.runner import CommandRunner


class ProviderRegistry:
    """
    Registry of provider adapters keyed by provider id.

    Iteration follows registration order, which is also the order providers
    are listed and checked in.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._providers: dict[str, UpdateProvider] = {}

    def register(self, provider: UpdateProvider) -> None:
        """
        Register a provider under its info.id.

        Raises:
            ValueError: If a provider is already registered under that id.
        """
        provider_id = provider.info.id
        if provider_id in self._providers:
            raise ValueError(f"Provider '{provider_id}' is already registered")
        self._providers[provider_id] = provider

    def get(self, provider_id: str) -> UpdateProvider | None:
        """Return the provider for an id, or None if unknown."""
        return self._providers.get(provider_id)

    def require(self, provider_id: str) -> UpdateProvider:
        """
        Return the provider for an id.

        Raises:
            InvalidArgumentError: If the id is not registered.
        """
        provider = self._providers.get(provider_id)
        if provider is None:
            raise InvalidArgumentError(
                f"Unknown provider: {provider_id}",
                details={"provider_id": provider_id, "known": self.list_ids()},
            )
        return provider

    def list_ids(self) -> list[str]:
        """List registered provider ids in registration order."""
        return list(self._providers)

    def defaults(self) -> dict[str, bool]:
        """Map every provider id to its default enabled flag."""
        return {pid: p.info.default_enabled for pid, p in self._providers.items()}

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self) -> Iterator[UpdateProvider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)


def build_default_registry(
    runner: CommandRunner | None = None,
    config: AppConfig | None = None,
) -> ProviderRegistry:
    """
    Create a registry holding every built-in provider.

    Args:
        runner: Command runner shared by all providers.
        config: Application config supplying registry and elevation settings.

    Returns:
        A populated ProviderRegistry.
    """
    runner = runner or CommandRunner()
    config = config or AppConfig()

    registry = ProviderRegistry()
    registry.register(
        WingetProvider(
            runner,
            helper_command=config.elevation.helper_command,
            helper_package_id=config.elevation.helper_package_id,
        )
    )
    registry.register(ProtoProvider(runner))
    registry.register(MoonrepoProvider(runner))
    registry.register(
        ClaudeProvider(
            runner,
            package_url=config.registry.claude_package_url,
            http_timeout=config.registry.http_timeout,
        )
    )
    registry.register(BunProvider(runner))
    registry.register(NpmProvider(runner))
    registry.register(PnpmProvider(runner))
    registry.register(PsModulesProvider(runner))
    registry.register(ChocolateyProvider(runner))
    registry.register(ScoopProvider(runner))
    return registry


__all__ = [
    "ElevatingProvider",
    "ProviderRegistry",
    "UpdateProvider",
    "build_default_registry",
]
