"""
Scoop provider. Disabled by default.

`scoop status` only knows about releases its buckets have fetched, so the
check refreshes the buckets with `scoop update` first.
"""

from __future__ import annotations

from update_manager.logging import get_logger
from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_scoop_status
from update_manager.providers.base import (
    INSTALLER_TIMEOUT,
    LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    batch_update_all,
    command_available,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner

logger = get_logger(__name__)


class ScoopProvider:
    """Adapter for Scoop apps."""

    info = ProviderInfo(
        id="scoop",
        display_name="Scoop",
        icon="🥄",
        default_enabled=False,
    )

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "scoop")

    async def check_updates(self) -> list[UpdateRecord]:
        refresh = await self.runner.run(["scoop", "update"], timeout=LISTING_TIMEOUT)
        if not refresh.success:
            logger.debug(
                "Bucket refresh failed, status may be stale",
                extra={"stderr": refresh.stderr},
            )

        result = await self.runner.run(["scoop", "status"], timeout=LISTING_TIMEOUT)
        output = listing_output(result)
        if output is None:
            return []
        return records_from(self.info.id, parse_scoop_status(output))

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(
            ["scoop", "update", package_id],
            timeout=UPDATE_TIMEOUT,
        )
        return result.success

    async def update_all(self) -> UpdateResult:
        return await batch_update_all(
            self,
            self.runner,
            ["scoop", "update", "*"],
            timeout=INSTALLER_TIMEOUT,
        )
