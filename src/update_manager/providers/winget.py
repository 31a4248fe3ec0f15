"""
WinGet provider.

Updates run unprivileged first. When that fails and the caller asked for a
forced update, the command is retried once through the elevation helper
(gsudo by default) if it is installed:

    NOT_ATTEMPTED -> TRIED_UNPRIVILEGED -> DONE
                                        -> TRIED_ELEVATED -> DONE
"""

from __future__ import annotations

from update_manager.errors import UnsupportedUpdateError
from update_manager.logging import get_logger
from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_winget_upgrade
from update_manager.providers.base import (
    BATCH_TIMEOUT,
    INSTALLER_TIMEOUT,
    NETWORK_LISTING_TIMEOUT,
    UPDATE_TIMEOUT,
    batch_update_all,
    command_available,
    listing_output,
    records_from,
)
from update_manager.runner import CommandRunner

logger = get_logger(__name__)

AGREEMENT_FLAGS = ("--accept-package-agreements", "--accept-source-agreements")

# winget's message for packages whose publisher requires its own updater
UNSUPPORTED_MARKERS = (
    "cannot be upgraded using winget",
    "use the method provided by the publisher",
)


class WingetProvider:
    """Adapter for the Windows Package Manager."""

    info = ProviderInfo(
        id="winget",
        display_name="WinGet",
        icon="📦",
        requires_elevated_rights=True,
        supports_interactive=True,
    )

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        helper_command: str = "gsudo",
        helper_package_id: str = "gerardog.gsudo",
    ) -> None:
        self.runner = runner or CommandRunner()
        self.helper_command = helper_command
        self.helper_package_id = helper_package_id
        # Process-lifetime cache, resolved on first use
        self._helper_available: bool | None = None

    async def is_available(self) -> bool:
        return command_available(self.runner, "winget")

    async def check_updates(self) -> list[UpdateRecord]:
        result = await self.runner.run(
            ["winget", "upgrade", "--include-pinned"],
            timeout=NETWORK_LISTING_TIMEOUT,
        )
        output = listing_output(result)
        if output is None:
            return []
        return records_from(self.info.id, parse_winget_upgrade(output))

    async def has_elevation_helper(self) -> bool:
        if self._helper_available is None:
            self._helper_available = command_available(self.runner, self.helper_command)
        return self._helper_available

    async def install_elevation_helper(self) -> bool:
        """Install the elevation helper through winget itself."""
        result = await self.runner.run(
            [
                "winget",
                "install",
                self.helper_package_id,
                "--silent",
                *AGREEMENT_FLAGS,
            ],
            timeout=UPDATE_TIMEOUT,
        )
        if result.success:
            self._helper_available = True
        else:
            logger.warning(
                "Elevation helper install failed",
                extra={"package": self.helper_package_id, "stderr": result.stderr},
            )
        return result.success

    def _upgrade_command(self, package_id: str, options: UpdateOptions) -> list[str]:
        argv = ["winget", "upgrade", "--id", package_id, "--exact"]
        if not options.interactive:
            argv.append("--silent")
        if options.force:
            argv.extend(["--force", "--include-pinned"])
        argv.extend(AGREEMENT_FLAGS)
        return argv

    def _raise_if_unsupported(self, package_id: str, output: str) -> None:
        lowered = output.lower()
        if any(marker in lowered for marker in UNSUPPORTED_MARKERS):
            raise UnsupportedUpdateError(
                package_id,
                self.info.id,
                details={"output": output[-500:]},
            )

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        """
        Upgrade one package by exact id.

        Raises:
            UnsupportedUpdateError: If winget reports that the package must
                be updated with the publisher's own updater.
            CommandTimeoutError: If an upgrade attempt timed out.
        """
        options = options or UpdateOptions()
        argv = self._upgrade_command(package_id, options)

        result = await self.runner.run(argv, timeout=INSTALLER_TIMEOUT)
        if result.success:
            return True
        result.raise_for_timeout(f"winget upgrade {package_id}")
        self._raise_if_unsupported(package_id, result.output)

        if not (options.force and await self.has_elevation_helper()):
            return False

        logger.info(
            "Retrying update with elevation",
            extra={"package": package_id, "helper": self.helper_command},
        )
        elevated = await self.runner.run(
            [self.helper_command, *argv],
            timeout=INSTALLER_TIMEOUT,
        )
        if elevated.success:
            return True
        elevated.raise_for_timeout(f"elevated winget upgrade {package_id}")
        self._raise_if_unsupported(package_id, elevated.output)
        return False

    async def update_all(self) -> UpdateResult:
        return await batch_update_all(
            self,
            self.runner,
            ["winget", "upgrade", "--all", "--silent", *AGREEMENT_FLAGS],
            timeout=BATCH_TIMEOUT,
        )
