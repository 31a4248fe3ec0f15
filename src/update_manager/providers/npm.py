"""npm global packages provider."""

from __future__ import annotations

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_outdated_json
from update_manager.providers.base import (
    LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    command_available,
    default_update_all,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner


class NpmProvider:
    """Adapter for packages installed with `npm install -g`."""

    info = ProviderInfo(id="npm", display_name="npm (global)", icon="📦")

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "npm")

    async def check_updates(self) -> list[UpdateRecord]:
        # Exits 1 when packages are outdated
        result = await self.runner.run(
            ["npm", "outdated", "-g", "--json"],
            timeout=LISTING_TIMEOUT,
        )
        output = listing_output(result)
        if output is None:
            return []
        return records_from(self.info.id, parse_outdated_json(output))

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(
            ["npm", "update", "-g", package_id],
            timeout=UPDATE_TIMEOUT,
        )
        return result.success

    async def update_all(self) -> UpdateResult:
        return await default_update_all(self)
