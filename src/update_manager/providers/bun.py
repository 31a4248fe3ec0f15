"""Bun global packages provider."""

from __future__ import annotations

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_box_table
from update_manager.providers.base import (
    INSTALLER_TIMEOUT,
    LISTING_TIMEOUT,
    QUICK_LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    batch_update_all,
    command_available,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner


class BunProvider:
    """Adapter for `bun` and its globally installed packages."""

    info = ProviderInfo(id="bun", display_name="Bun (global)", icon="🥟")

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "bun")

    async def check_updates(self) -> list[UpdateRecord]:
        # Exits 1 when packages are outdated
        result = await self.runner.run(
            ["bun", "outdated", "-g"],
            timeout=QUICK_LISTING_TIMEOUT,
        )
        output = listing_output(result)
        if output is None:
            return []
        # Columns: Package | Current | Update | Latest
        parsed = parse_box_table(output, title="Package", current_index=1, latest_index=3)
        return records_from(self.info.id, parsed)

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        if package_id == "bun":
            result = await self.runner.run(["bun", "upgrade"], timeout=UPDATE_TIMEOUT)
        else:
            result = await self.runner.run(
                ["bun", "update", "-g", package_id],
                timeout=LISTING_TIMEOUT,
            )
        return result.success

    async def update_all(self) -> UpdateResult:
        return await batch_update_all(
            self,
            self.runner,
            ["bun", "update", "-g"],
            timeout=INSTALLER_TIMEOUT,
        )
