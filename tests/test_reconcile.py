"""
Tests for the reconciliation engine.

Tests cover:
- Concurrent checks across providers
- Ignore-list and installed-version filtering
- Swallowed check failures and checked_provider_ids
- Unknown and unavailable providers
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from update_manager.models import PackageStatus, ProviderInfo, UpdateRecord, UpdateResult
from update_manager.providers import ProviderRegistry
from update_manager.reconcile import CheckResult, check_all, filter_records


def make_record(
    provider_id: str,
    package_id: str,
    current: str = "1.0.0",
    new: str = "2.0.0",
    status: PackageStatus = PackageStatus.AVAILABLE,
) -> UpdateRecord:
    return UpdateRecord(
        id=package_id,
        name=package_id,
        current_version=current,
        new_version=new,
        status=status,
        provider_id=provider_id,
    )


class StubProvider:
    """Provider whose operations are AsyncMocks."""

    def __init__(
        self,
        provider_id: str,
        records: list[UpdateRecord] | None = None,
        *,
        available: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.info = ProviderInfo(id=provider_id, display_name=provider_id)
        self.is_available = AsyncMock(return_value=available)
        if error is not None:
            self.check_updates = AsyncMock(side_effect=error)
        else:
            self.check_updates = AsyncMock(return_value=records or [])
        self.update_package = AsyncMock(return_value=True)
        self.update_all = AsyncMock(return_value=UpdateResult())


def registry_of(*providers: StubProvider) -> ProviderRegistry:
    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider)  # type: ignore[arg-type]
    return registry


# =============================================================================
# Filter Tests
# =============================================================================


class TestFilterRecords:
    """Tests for filter_records."""

    def test_ignored_ids_removed(self) -> None:
        """Test that ignored ids are dropped."""
        records = [make_record("npm", "typescript"), make_record("npm", "eslint")]

        kept = filter_records(records, ignored=["eslint"])

        assert [r.id for r in kept] == ["typescript"]

    def test_installed_version_override(self) -> None:
        """Test that an update to the version we installed is dropped."""
        records = [make_record("winget", "Microsoft.Teams", current="23.0", new="24.1")]

        kept = filter_records(records, installed_versions={"Microsoft.Teams": "24.1"})

        assert kept == []

    def test_installed_version_differs(self) -> None:
        """Test that a newer release than the installed one is kept."""
        records = [make_record("winget", "Microsoft.Teams", current="23.0", new="24.2")]

        kept = filter_records(records, installed_versions={"Microsoft.Teams": "24.1"})

        assert len(kept) == 1

    def test_filters_ignore_status(self) -> None:
        """Test that pinned and unknown records are filtered like any other."""
        records = [
            make_record("winget", "a", status=PackageStatus.PINNED),
            make_record("winget", "b", status=PackageStatus.UNKNOWN, new="3.0"),
        ]

        kept = filter_records(records, ignored=["a"], installed_versions={"b": "3.0"})

        assert kept == []


# =============================================================================
# check_all Tests
# =============================================================================


class TestCheckAll:
    """Tests for check_all."""

    @pytest.mark.asyncio
    async def test_erroring_provider_counts_as_checked(self) -> None:
        """Test one erroring and one healthy provider."""
        healthy = StubProvider("npm", [make_record("npm", "typescript")])
        broken = StubProvider("winget", error=RuntimeError("winget crashed"))

        result = await check_all(registry_of(broken, healthy), ["winget", "npm"])

        assert isinstance(result, CheckResult)
        assert len(result.records) == 1
        assert result.records[0].id == "typescript"
        assert sorted(result.checked_provider_ids) == ["npm", "winget"]

    @pytest.mark.asyncio
    async def test_unavailable_provider_not_checked(self) -> None:
        """Test that an unavailable provider is skipped entirely."""
        missing = StubProvider("scoop", [make_record("scoop", "git")], available=False)
        present = StubProvider("npm")

        result = await check_all(registry_of(missing, present), ["scoop", "npm"])

        assert result.checked_provider_ids == ["npm"]
        assert result.records == []
        missing.check_updates.assert_not_called()

    @pytest.mark.asyncio
    async def test_raising_availability_probe(self) -> None:
        """Test that a raising is_available counts as unavailable."""
        provider = StubProvider("npm")
        provider.is_available.side_effect = OSError("no PATH")

        result = await check_all(registry_of(provider), ["npm"])

        assert result.checked_provider_ids == []

    @pytest.mark.asyncio
    async def test_only_enabled_providers_run(self) -> None:
        """Test that providers not listed as enabled are not called."""
        enabled = StubProvider("npm")
        disabled = StubProvider("scoop")

        await check_all(registry_of(enabled, disabled), ["npm"])

        disabled.is_available.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_id_skipped(self) -> None:
        """Test that an id without a provider is ignored."""
        provider = StubProvider("npm")

        result = await check_all(registry_of(provider), ["future-provider", "npm"])

        assert result.checked_provider_ids == ["npm"]

    @pytest.mark.asyncio
    async def test_filters_applied(self) -> None:
        """Test ignore and installed-version filters over combined results."""
        winget = StubProvider(
            "winget",
            [
                make_record("winget", "Microsoft.Teams", current="23.0", new="24.1"),
                make_record("winget", "Git.Git"),
            ],
        )
        npm = StubProvider("npm", [make_record("npm", "typescript")])

        result = await check_all(
            registry_of(winget, npm),
            ["winget", "npm"],
            ignored={"typescript"},
            installed_versions={"Microsoft.Teams": "24.1"},
        )

        assert [r.id for r in result.records] == ["Git.Git"]

    @pytest.mark.asyncio
    async def test_checks_run_concurrently(self) -> None:
        """Test that all checks are in flight at the same time."""
        started = 0
        completed = 0
        both_started = asyncio.Event()

        async def slow_check() -> list[UpdateRecord]:
            nonlocal started, completed
            started += 1
            if started == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1.0)
            completed += 1
            return []

        first = StubProvider("npm")
        second = StubProvider("pnpm")
        first.check_updates = AsyncMock(side_effect=slow_check)
        second.check_updates = AsyncMock(side_effect=slow_check)

        result = await check_all(registry_of(first, second), ["npm", "pnpm"])

        assert result.checked_provider_ids == ["npm", "pnpm"]
        assert completed == 2
