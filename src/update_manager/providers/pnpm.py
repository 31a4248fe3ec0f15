"""pnpm global packages provider."""

from __future__ import annotations

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_gap_table, parse_outdated_json
from update_manager.providers.base import (
    ENUMERATION_TIMEOUT,
    LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    batch_update_all,
    command_available,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner


class PnpmProvider:
    """Adapter for packages installed with `pnpm add -g`."""

    info = ProviderInfo(id="pnpm", display_name="pnpm (global)", icon="📦")

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "pnpm")

    async def check_updates(self) -> list[UpdateRecord]:
        result = await self.runner.run(
            ["pnpm", "outdated", "-g", "--json"],
            timeout=LISTING_TIMEOUT,
        )
        output = listing_output(result)
        if output is None:
            return []

        # Some pnpm releases ignore --json for global listings
        parsed = parse_outdated_json(output)
        if not parsed and output.strip():
            parsed = parse_gap_table(output)
        return records_from(self.info.id, parsed)

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(
            ["pnpm", "update", "-g", package_id],
            timeout=UPDATE_TIMEOUT,
        )
        return result.success

    async def update_all(self) -> UpdateResult:
        return await batch_update_all(
            self,
            self.runner,
            ["pnpm", "update", "-g"],
            timeout=ENUMERATION_TIMEOUT,
        )
