"""
PowerShell Gallery modules provider.

Checks run one PowerShell script that prints `name|installed|latest` for
every installed module with a newer gallery release. Updates reinstall the
module with Install-Module in a fresh pwsh process (a module loaded in the
current session cannot be replaced), repeat the install in Windows
PowerShell when it exists, then try to remove superseded versions.
"""

from __future__ import annotations

from update_manager.logging import get_logger
from update_manager.models import ProviderInfo, UpdateOptions, UpdateRecord, UpdateResult
from update_manager.parsers import parse_pipe_delimited
from update_manager.providers.base import (
    ENUMERATION_TIMEOUT,
    LISTING_TIMEOUT,
    command_available,
    default_update_all,
    listing_output,
    records_from,
)
from update_manager.runner import CommandResult, CommandRunner

logger = get_logger(__name__)

PS_FLAGS = ("-NoProfile", "-NonInteractive", "-Command")

SUCCESS_MARKER = "SUCCESS"

# Prerelease suffixes are stripped before [version] comparisons
CHECK_SCRIPT = """
$ErrorActionPreference = 'SilentlyContinue'
$modules = Get-InstalledModule | Group-Object Name | ForEach-Object {
  $_.Group | Sort-Object { [version]($_.Version -replace '-.*','') } -Descending | Select-Object -First 1
}
foreach ($module in $modules) {
  try {
    $online = Find-Module -Name $module.Name -ErrorAction SilentlyContinue
    $installed = [version]($module.Version -replace '-.*','')
    if ($online -and ([version]$online.Version -gt $installed)) {
      Write-Output "$($module.Name)|$($module.Version)|$($online.Version)"
    }
  } catch {}
}
"""

CLEANUP_SCRIPT = """
$ErrorActionPreference = 'SilentlyContinue'
$all = Get-InstalledModule -Name '{name}' -AllVersions 2>$null |
  Sort-Object {{ [version]($_.Version -replace '-.*','') }} -Descending
if ($all.Count -gt 1) {{
  foreach ($old in ($all | Select-Object -Skip 1)) {{
    Uninstall-Module -Name '{name}' -RequiredVersion $old.Version -Force 2>$null
  }}
}}
"""


def quote_ps(value: str) -> str:
    """Escape a value for use inside a single-quoted PowerShell string."""
    return value.replace("'", "''")


class PsModulesProvider:
    """Adapter for modules installed from the PowerShell Gallery."""

    info = ProviderInfo(
        id="psmodules",
        display_name="PowerShell Modules",
        icon="💠",
        requires_elevated_rights=True,
    )

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    async def is_available(self) -> bool:
        return command_available(self.runner, "pwsh")

    async def _powershell(
        self,
        script: str,
        *,
        shell: str = "pwsh",
        timeout: float = ENUMERATION_TIMEOUT,
    ) -> CommandResult:
        return await self.runner.run([shell, *PS_FLAGS, script], timeout=timeout)

    async def check_updates(self) -> list[UpdateRecord]:
        result = await self._powershell(CHECK_SCRIPT)
        output = listing_output(result)
        if output is None:
            return []
        return records_from(self.info.id, parse_pipe_delimited(output))

    async def _install(self, shell: str, module: str) -> bool:
        script = (
            f"Install-Module -Name '{quote_ps(module)}' -Force -AllowClobber "
            f"-SkipPublisherCheck -ErrorAction Stop; Write-Host '{SUCCESS_MARKER}'"
        )
        result = await self._powershell(script, shell=shell)
        # Install-Module can exit 0 after a non-terminating error
        return SUCCESS_MARKER in result.stdout

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool:
        """
        Reinstall a module at its latest version.

        Only the pwsh install decides the outcome. The Windows PowerShell
        install and the cleanup of old versions are best-effort.
        """
        ok = await self._install("pwsh", package_id)

        if command_available(self.runner, "powershell"):
            if not await self._install("powershell", package_id):
                logger.debug(
                    "Windows PowerShell install failed",
                    extra={"module": package_id},
                )

        cleanup = await self._powershell(
            CLEANUP_SCRIPT.format(name=quote_ps(package_id)),
            timeout=LISTING_TIMEOUT,
        )
        if not cleanup.success:
            logger.debug(
                "Old module version cleanup failed",
                extra={"module": package_id, "stderr": cleanup.stderr},
            )

        return ok

    async def update_all(self) -> UpdateResult:
        return await default_update_all(self)
