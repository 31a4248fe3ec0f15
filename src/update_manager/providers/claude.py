"""
Claude CLI provider.

The installed version comes from `claude --version`; the latest release is
read from the npm registry's `dist-tags.latest` for the CLI's package.
`claude update` both checks and installs, so update_all() compares the
version before and after to tell an update from a no-op.
"""

from __future__ import annotations

import re

import httpx

from update_manager.config import DEFAULT_CLAUDE_PACKAGE_URL
from update_manager.logging import get_logger
from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.providers.base import UPDATE_TIMEOUT, VERSION_TIMEOUT, command_available
from update_manager.runner import CommandRunner
from update_manager.version import is_newer

logger = get_logger(__name__)

VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)")


class ClaudeProvider:
    """Adapter for the Claude CLI's self-updater."""

    info = ProviderInfo(id="claude", display_name="Claude CLI", icon="🤖")

    PACKAGE_ID = "claude"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        package_url: str = DEFAULT_CLAUDE_PACKAGE_URL,
        http_timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            runner: Command runner.
            package_url: npm registry document for the CLI package.
            http_timeout: Seconds allowed for the registry request.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self.runner = runner or CommandRunner()
        self.package_url = package_url
        self.http_timeout = http_timeout
        self.transport = transport

    async def is_available(self) -> bool:
        return command_available(self.runner, "claude")

    async def current_version(self) -> str | None:
        result = await self.runner.run(["claude", "--version"], timeout=VERSION_TIMEOUT)
        if not result.success:
            return None
        match = VERSION_RE.search(result.stdout)
        return match.group(1) if match else None

    async def latest_version(self) -> str | None:
        """
        Fetch the latest published version from the registry.

        Returns:
            The `dist-tags.latest` value, or None if the registry cannot be
            reached or answers with something unexpected.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.http_timeout,
                transport=self.transport,
            ) as client:
                response = await client.get(self.package_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.debug(
                "Registry request failed",
                extra={"url": self.package_url, "error": str(e)},
            )
            return None
        except ValueError as e:
            logger.debug(
                "Registry response is not JSON",
                extra={"url": self.package_url, "error": str(e)},
            )
            return None

        if not isinstance(data, dict):
            return None
        tags = data.get("dist-tags")
        latest = tags.get("latest") if isinstance(tags, dict) else None
        return latest if isinstance(latest, str) else None

    async def check_updates(self) -> list[UpdateRecord]:
        current = await self.current_version()
        if current is None:
            return []

        latest = await self.latest_version()
        if latest is None or not is_newer(current, latest):
            return []

        return [
            UpdateRecord(
                id=self.PACKAGE_ID,
                name=self.info.display_name,
                current_version=current,
                new_version=latest,
                provider_id=self.info.id,
            )
        ]

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        result = await self.runner.run(["claude", "update"], timeout=UPDATE_TIMEOUT)
        return result.success

    async def update_all(self) -> UpdateResult:
        before = await self.current_version()
        ok = await self.update_package(self.PACKAGE_ID)
        after = await self.current_version()

        if not ok:
            return UpdateResult(success=False, failed=[self.PACKAGE_ID])
        if before == after:
            return UpdateResult(skipped=[self.PACKAGE_ID])
        return UpdateResult(updated=[self.PACKAGE_ID])
