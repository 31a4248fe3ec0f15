"""
Update orchestration.

UpdateOrchestrator.apply() takes the records a check reported and:

1. Splits them into available records and skippable ones (pinned or
   unknown-version).
2. Offers a forced retry for skippable records of providers that can
   elevate, installing the elevation helper first if the caller agrees.
3. Groups the update set by provider, in first-seen order, and updates one
   record at a time.
4. Writes each successfully installed version through to the state store.

Updates are never run concurrently, so installer prompts and elevation
requests do not overlap.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

from pydantic import BaseModel, Field

from update_manager.errors import StateError, UnsupportedUpdateError
from update_manager.logging import get_logger
from update_manager.models import PackageStatus, ProviderInfo, UpdateOptions, UpdateRecord
from update_manager.providers import ElevatingProvider, ProviderRegistry, UpdateProvider
from update_manager.state import StateStore

logger = get_logger(__name__)

SKIPPABLE_STATUSES = (PackageStatus.PINNED, PackageStatus.UNKNOWN)

ConfirmForce = Callable[[ProviderInfo, Sequence[UpdateRecord]], bool]
OfferHelperInstall = Callable[[ProviderInfo], bool]


class UpdateOutcome(str, Enum):
    """Result of one record's update."""

    UPDATED = "updated"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


class UpdateProgress(BaseModel):
    """
    Progress event passed to the on_progress callback.

    Emitted once before a record is attempted (outcome None) and once after.
    """

    record: UpdateRecord
    index: int = Field(..., description="1-based position in the update set")
    total: int
    force: bool = False
    outcome: UpdateOutcome | None = None
    message: str | None = None


OnProgress = Callable[[UpdateProgress], None]


class UpdateSummary(BaseModel):
    """
    Aggregate outcome of apply().

    Attributes:
        updated: Records whose update succeeded.
        failed: Records whose update returned False or raised.
        unsupported: Records the manager refuses to update (the package has
            its own updater).
        skipped: Pinned or unknown-version records not force-accepted, and
            records the check could not evaluate (status error).
        messages: Package id to an explanation, for failed, unsupported and
            errored records.
    """

    updated: list[UpdateRecord] = Field(default_factory=list)
    failed: list[UpdateRecord] = Field(default_factory=list)
    unsupported: list[UpdateRecord] = Field(default_factory=list)
    skipped: list[UpdateRecord] = Field(default_factory=list)
    messages: dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        """True if nothing failed (unsupported records count as failures)."""
        return not self.failed and not self.unsupported


class UpdateOrchestrator:
    """
    Applies updates sequentially and records installed versions.

    Attributes:
        registry: Provider registry used to resolve record.provider_id.
        store: State store receiving installed versions.
    """

    def __init__(self, registry: ProviderRegistry, store: StateStore) -> None:
        self.registry = registry
        self.store = store

    async def _accept_forced(
        self,
        skippable: list[UpdateRecord],
        confirm_force: ConfirmForce | None,
        offer_helper_install: OfferHelperInstall | None,
    ) -> list[UpdateRecord]:
        """Return the skippable records the caller agreed to force."""
        if confirm_force is None:
            return []

        by_provider: dict[str, list[UpdateRecord]] = {}
        for record in skippable:
            by_provider.setdefault(record.provider_id, []).append(record)

        accepted: list[UpdateRecord] = []
        for provider_id, records in by_provider.items():
            provider = self.registry.get(provider_id)
            if not isinstance(provider, ElevatingProvider):
                continue
            if not confirm_force(provider.info, records):
                continue

            if not await provider.has_elevation_helper():
                if offer_helper_install is not None and offer_helper_install(provider.info):
                    installed = await provider.install_elevation_helper()
                    logger.info(
                        "Elevation helper install finished",
                        extra={"provider": provider_id, "success": installed},
                    )

            accepted.extend(records)

        return accepted

    async def _update_one(
        self,
        provider: UpdateProvider,
        record: UpdateRecord,
        options: UpdateOptions,
        retry_interactive: bool,
    ) -> bool:
        ok = await provider.update_package(record.id, options)
        if ok or not retry_interactive or options.interactive:
            return ok
        if not provider.info.supports_interactive:
            return ok

        # Some installers refuse silent mode
        logger.info(
            "Retrying update interactively",
            extra={"provider": provider.info.id, "package": record.id},
        )
        retry = options.model_copy(update={"interactive": True})
        return await provider.update_package(record.id, retry)

    async def apply(
        self,
        records: Sequence[UpdateRecord],
        *,
        confirm_force: ConfirmForce | None = None,
        offer_helper_install: OfferHelperInstall | None = None,
        interactive: bool = False,
        on_progress: OnProgress | None = None,
    ) -> UpdateSummary:
        """
        Update the given records.

        Args:
            records: Records from a check.
            confirm_force: Called once per elevation-capable provider with
                its pinned/unknown records; True force-updates them.
            offer_helper_install: Called when a force was accepted but the
                provider's elevation helper is missing; True installs it.
            interactive: Retry a failed silent update once with installer
                prompts enabled, for providers that support it.
            on_progress: Receives an UpdateProgress before and after each
                record.

        Returns:
            UpdateSummary. Failures of individual records never abort the run.
        """
        summary = UpdateSummary()

        to_update = [r for r in records if r.status == PackageStatus.AVAILABLE]
        skippable = [r for r in records if r.status in SKIPPABLE_STATUSES]

        forced = await self._accept_forced(skippable, confirm_force, offer_helper_install)
        forced_keys = {(r.provider_id, r.id) for r in forced}
        summary.skipped = [r for r in skippable if (r.provider_id, r.id) not in forced_keys]
        for record in records:
            if record.status == PackageStatus.ERROR:
                summary.skipped.append(record)
                summary.messages[record.id] = record.notes or "Check reported an error"

        groups: dict[str, list[tuple[UpdateRecord, bool]]] = {}
        for record in to_update:
            groups.setdefault(record.provider_id, []).append((record, False))
        for record in forced:
            groups.setdefault(record.provider_id, []).append((record, True))

        total = sum(len(group) for group in groups.values())
        index = 0

        for provider_id, group in groups.items():
            provider = self.registry.get(provider_id)

            for record, force in group:
                index += 1
                if on_progress:
                    on_progress(UpdateProgress(record=record, index=index, total=total, force=force))

                outcome, message = await self._apply_record(
                    provider, record, force=force, interactive=interactive
                )

                if outcome == UpdateOutcome.UPDATED:
                    summary.updated.append(record)
                    self._record_installed(record)
                elif outcome == UpdateOutcome.UNSUPPORTED:
                    summary.unsupported.append(record)
                else:
                    summary.failed.append(record)
                if message:
                    summary.messages[record.id] = message

                if on_progress:
                    on_progress(
                        UpdateProgress(
                            record=record,
                            index=index,
                            total=total,
                            force=force,
                            outcome=outcome,
                            message=message,
                        )
                    )

        logger.info(
            "Updates applied",
            extra={
                "updated": len(summary.updated),
                "failed": len(summary.failed),
                "unsupported": len(summary.unsupported),
                "skipped": len(summary.skipped),
            },
        )
        return summary

    def _record_installed(self, record: UpdateRecord) -> None:
        try:
            self.store.set_installed_version(record.id, record.new_version)
        except StateError as e:
            logger.warning(
                "Could not record installed version",
                extra={"package": record.id, "error": e.message},
            )

    async def _apply_record(
        self,
        provider: UpdateProvider | None,
        record: UpdateRecord,
        *,
        force: bool,
        interactive: bool,
    ) -> tuple[UpdateOutcome, str | None]:
        if provider is None:
            logger.warning(
                "Record from unknown provider",
                extra={"provider": record.provider_id, "package": record.id},
            )
            return UpdateOutcome.FAILED, f"Unknown provider: {record.provider_id}"

        options = UpdateOptions(force=force)
        try:
            ok = await self._update_one(provider, record, options, interactive)
        except UnsupportedUpdateError as e:
            logger.info(
                "Update not supported by provider",
                extra={"provider": record.provider_id, "package": record.id},
            )
            return UpdateOutcome.UNSUPPORTED, e.message
        except Exception as e:
            logger.warning(
                "Update raised",
                extra={
                    "provider": record.provider_id,
                    "package": record.id,
                    "error": str(e),
                },
            )
            return UpdateOutcome.FAILED, str(e)

        if ok:
            return UpdateOutcome.UPDATED, None
        return UpdateOutcome.FAILED, None
