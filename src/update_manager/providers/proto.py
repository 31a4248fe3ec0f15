"""proto toolchain manager provider."""

from __future__ import annotations

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_arrow_lines, parse_box_table
from update_manager.providers.base import (
    LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    command_available,
    default_update_all,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner


class ProtoProvider:
    """Adapter for `proto` managed tools."""

    info = ProviderInfo(id="proto", display_name="Proto", icon="🔧")

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "proto")

    async def check_updates(self) -> list[UpdateRecord]:
        result = await self.runner.run(["proto", "outdated"], timeout=LISTING_TIMEOUT)
        output = listing_output(result)
        if output is None:
            return []

        # Older releases print "tool current -> latest", newer ones a table
        parsed = parse_arrow_lines(output)
        if not parsed:
            parsed = parse_box_table(output, title="Tool", current_index=1, latest_index=2)
        return records_from(self.info.id, parsed)

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(["proto", "install", package_id], timeout=UPDATE_TIMEOUT)
        return result.success

    async def update_all(self) -> UpdateResult:
        return await default_update_all(self)
