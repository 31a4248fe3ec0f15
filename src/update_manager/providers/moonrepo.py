"""
moon (moonrepo) provider.

moon updates itself as a whole, so it reports at most one record with id
"moon".
"""

from __future__ import annotations

import re

from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.providers.base import (
    QUICK_LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    VERSION_TIMEOUT,
    command_available,
)
from update_manager.runner import CommandRunner
from update_manager.version import is_newer

VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)")

# Phrases `moon upgrade --check` uses when a newer release exists
UPDATE_PHRASES = ("available", "new version")


class MoonrepoProvider:
    """Adapter for moon's self-upgrade."""

    info = ProviderInfo(id="moonrepo", display_name="Moonrepo", icon="🌙")

    PACKAGE_ID = "moon"

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "moon")

    async def current_version(self) -> str | None:
        result = await self.runner.run(["moon", "--version"], timeout=VERSION_TIMEOUT)
        if not result.success:
            return None
        match = VERSION_RE.search(result.stdout)
        return match.group(1) if match else None

    async def check_updates(self) -> list[UpdateRecord]:
        current = await self.current_version()
        if current is None:
            return []

        result = await self.runner.run(
            ["moon", "upgrade", "--check"],
            timeout=QUICK_LISTING_TIMEOUT,
        )
        lowered = result.stdout.lower()
        if not any(phrase in lowered for phrase in UPDATE_PHRASES):
            return []

        # The last version mentioned is the new one
        versions = VERSION_RE.findall(result.stdout)
        new_version = versions[-1] if versions else "latest"
        if versions and not is_newer(current, new_version):
            return []

        return [
            UpdateRecord(
                id=self.PACKAGE_ID,
                name=self.PACKAGE_ID,
                current_version=current,
                new_version=new_version,
                provider_id=self.info.id,
            )
        ]

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(["moon", "upgrade"], timeout=UPDATE_TIMEOUT)
        return result.success

    async def update_all(self) -> UpdateResult:
        ok = await self.update_package(self.PACKAGE_ID)
        return UpdateResult(
            success=ok,
            updated=[self.PACKAGE_ID] if ok else [],
            failed=[] if ok else [self.PACKAGE_ID],
        )
