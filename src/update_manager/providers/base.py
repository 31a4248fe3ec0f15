"""
Provider contract and shared helpers.

A provider adapts one package manager to four operations:

- is_available(): the manager's executable resolves on PATH
- check_updates(): list pending updates as UpdateRecords
- update_package(id, options): upgrade one package
- update_all(): upgrade everything that is not pinned

Adapters are plain classes satisfying the UpdateProvider protocol. Behavior
they share (record construction, the default update_all loop, batch
upgrades) lives in the helper functions below rather than in a base class.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from update_manager.logging import get_logger
from update_manager.models import (
    PackageStatus,
    ParsedPackage,
    ProviderInfo,
    UpdateOptions,
    UpdateRecord,
    UpdateResult,
    make_record,
)
from update_manager.runner import CommandResult, CommandRunner

logger = get_logger(__name__)

# Timeouts in seconds
VERSION_TIMEOUT = 10.0
QUICK_LISTING_TIMEOUT = 30.0
LISTING_TIMEOUT = 60.0
NETWORK_LISTING_TIMEOUT = 120.0
ENUMERATION_TIMEOUT = 180.0
UPDATE_TIMEOUT = 120.0
INSTALLER_TIMEOUT = 300.0
BATCH_TIMEOUT = 600.0


@runtime_checkable
class UpdateProvider(Protocol):
    """The four-operation contract every package manager adapter implements."""

    info: ProviderInfo

    async def is_available(self) -> bool: ...

    async def check_updates(self) -> list[UpdateRecord]: ...

    async def update_package(
        self,
        package_id: str,
        options: UpdateOptions | None = None,
    ) -> bool: ...

    async def update_all(self) -> UpdateResult: ...


@runtime_checkable
class ElevatingProvider(Protocol):
    """
    A provider that can retry a failed update through an elevation helper.

    Only these providers are offered a forced retry of pinned or
    unknown-version records.
    """

    async def has_elevation_helper(self) -> bool: ...

    async def install_elevation_helper(self) -> bool: ...


def command_available(runner: CommandRunner, command: str) -> bool:
    """Resolve a command on PATH without raising."""
    try:
        return runner.which(command)
    except Exception as e:
        logger.debug(
            "Command resolution failed",
            extra={"command": command, "error": str(e)},
        )
        return False


def listing_output(result: CommandResult) -> str | None:
    """
    Return output worth parsing from a listing command, or None.

    Several managers exit nonzero to signal "updates exist", so a failed
    command with output is still parsed. Only a failure without output
    short-circuits.
    """
    if not result.stdout:
        if not result.success:
            logger.debug(
                "Listing command failed without output",
                extra={"exit_code": result.exit_code, "stderr": result.stderr},
            )
        return None
    return result.stdout


def records_from(provider_id: str, parsed: Sequence[ParsedPackage]) -> list[UpdateRecord]:
    """Attribute parsed rows to a provider, keeping their order."""
    return [make_record(provider_id, package) for package in parsed]


async def default_update_all(provider: UpdateProvider) -> UpdateResult:
    """
    Update every pending package of a provider one at a time.

    Pinned records are skipped without an attempt. A package whose update
    raises counts as failed.
    """
    result = UpdateResult()

    for record in await provider.check_updates():
        if record.status == PackageStatus.PINNED:
            result.skipped.append(record.id)
            continue

        try:
            ok = await provider.update_package(record.id)
        except Exception as e:
            logger.warning(
                "Package update raised",
                extra={
                    "provider": provider.info.id,
                    "package": record.id,
                    "error": str(e),
                },
            )
            ok = False

        if ok:
            result.updated.append(record.id)
        else:
            result.failed.append(record.id)
            result.success = False

    return result


async def batch_update_all(
    provider: UpdateProvider,
    runner: CommandRunner,
    argv: Sequence[str],
    *,
    timeout: float = BATCH_TIMEOUT,
) -> UpdateResult:
    """
    Upgrade everything with one batch command.

    The batch result is attributed to every record that was available
    before the run; pinned and unknown-version records are reported as
    skipped, since batch upgrades leave them alone.
    """
    records = await provider.check_updates()
    attempted = [r.id for r in records if r.status == PackageStatus.AVAILABLE]
    skipped = [r.id for r in records if r.status != PackageStatus.AVAILABLE]

    if not attempted:
        return UpdateResult(skipped=skipped)

    outcome = await runner.run(argv, timeout=timeout)

    return UpdateResult(
        success=outcome.success,
        updated=attempted if outcome.success else [],
        failed=[] if outcome.success else attempted,
        skipped=skipped,
    )
