"""Chocolatey provider. Disabled by default; upgrades need an elevated shell."""

from __future__ import annotations

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_choco_outdated
from update_manager.providers.base import (
    BATCH_TIMEOUT,
    INSTALLER_TIMEOUT,
    NETWORK_LISTING_TIMEOUT,
    batch_update_all,
    command_available,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner


class ChocolateyProvider:
    """Adapter for Chocolatey packages."""

    info = ProviderInfo(
        id="chocolatey",
        display_name="Chocolatey",
        icon="🍫",
        requires_elevated_rights=True,
        default_enabled=False,
    )

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "choco")

    async def check_updates(self) -> list[UpdateRecord]:
        # -r: name|current|available|pinned
        result = await self.runner.run(
            ["choco", "outdated", "-r"],
            timeout=NETWORK_LISTING_TIMEOUT,
        )
        output = listing_output(result)
        if output is None:
            return []
        return records_from(self.info.id, parse_choco_outdated(output))

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(
            ["choco", "upgrade", package_id, "-y", "--no-progress"],
            timeout=INSTALLER_TIMEOUT,
        )
        return result.success

    async def update_all(self) -> UpdateResult:
        return await batch_update_all(
            self,
            self.runner,
            ["choco", "upgrade", "all", "-y", "--no-progress"],
            timeout=BATCH_TIMEOUT,
        )
