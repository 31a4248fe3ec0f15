"""
Reconciliation of update checks across providers.

check_all() runs every enabled provider's availability probe and update
check concurrently, waits for all of them, then filters the combined
records against the user's ignore list and the versions this tool last
installed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence

from pydantic import BaseModel, Field

from update_manager.logging import get_logger
from update_manager.models import UpdateRecord
from update_manager.providers import ProviderRegistry, UpdateProvider

logger = get_logger(__name__)


class CheckResult(BaseModel):
    """
    Combined outcome of a check across providers.

    Attributes:
        records: Pending updates that survived filtering, grouped by
            provider in enabled order.
        checked_provider_ids: Providers found available on this host,
            whether or not their check succeeded.
    """

    records: list[UpdateRecord] = Field(default_factory=list)
    checked_provider_ids: list[str] = Field(default_factory=list)


async def _check_provider(provider: UpdateProvider) -> tuple[bool, list[UpdateRecord]]:
    """
    Probe and check one provider.

    Returns:
        (available, records). A failing check yields no records but keeps
        the provider counted as available.
    """
    provider_id = provider.info.id

    try:
        available = await provider.is_available()
    except Exception as e:
        logger.warning(
            "Availability probe failed",
            extra={"provider": provider_id, "error": str(e)},
        )
        return False, []

    if not available:
        logger.debug("Provider not available", extra={"provider": provider_id})
        return False, []

    try:
        records = await provider.check_updates()
    except Exception as e:
        logger.warning(
            "Update check failed",
            extra={"provider": provider_id, "error": str(e)},
        )
        return True, []

    logger.debug(
        "Update check finished",
        extra={"provider": provider_id, "count": len(records)},
    )
    return True, records


def filter_records(
    records: Iterable[UpdateRecord],
    *,
    ignored: Iterable[str] = (),
    installed_versions: Mapping[str, str] | None = None,
) -> list[UpdateRecord]:
    """
    Drop ignored packages and updates to a version we already installed.

    The installed-version override is authoritative over the current
    version a manager reports, which some managers get wrong. Neither
    filter looks at record status.
    """
    ignored_ids = set(ignored)
    installed = installed_versions or {}

    kept = [r for r in records if r.id not in ignored_ids]
    return [r for r in kept if installed.get(r.id) != r.new_version]


async def check_all(
    registry: ProviderRegistry,
    enabled_ids: Sequence[str],
    *,
    ignored: Iterable[str] = (),
    installed_versions: Mapping[str, str] | None = None,
) -> CheckResult:
    """
    Check every enabled provider concurrently.

    Args:
        registry: Provider registry.
        enabled_ids: Provider ids to check. Unknown ids are skipped with a
            warning.
        ignored: Package ids to exclude.
        installed_versions: Package id to the version last installed by us.

    Returns:
        CheckResult with filtered records and the ids of available providers.
    """
    providers: list[UpdateProvider] = []
    for provider_id in dict.fromkeys(enabled_ids):
        provider = registry.get(provider_id)
        if provider is None:
            logger.warning("Skipping unknown provider", extra={"provider": provider_id})
            continue
        providers.append(provider)

    outcomes = await asyncio.gather(*(_check_provider(p) for p in providers))

    checked: list[str] = []
    records: list[UpdateRecord] = []
    for provider, (available, provider_records) in zip(providers, outcomes, strict=True):
        if available:
            checked.append(provider.info.id)
        records.extend(provider_records)

    filtered = filter_records(
        records,
        ignored=ignored,
        installed_versions=installed_versions,
    )

    logger.info(
        "Check complete",
        extra={
            "providers": checked,
            "found": len(records),
            "reported": len(filtered),
        },
    )
    return CheckResult(records=filtered, checked_provider_ids=checked)
