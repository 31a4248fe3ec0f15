"""
Command line entry point (`um`).

Commands:
    um check [provider]            List pending updates
    um update [provider] [flags]   Check, confirm and apply updates
    um providers [enable|disable <id>]
    um ignore <id> / um unignore <id> / um ignored
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from typing import Any

import yaml
from pydantic import ValidationError

from update_manager import __version__
from update_manager.config import AppConfig, load_config
from update_manager.errors import InvalidArgumentError, UnavailableError, UpdateManagerError
from update_manager.logging import get_logger, setup_logging
from update_manager.models import PackageStatus, ProviderInfo, UpdateRecord
from update_manager.orchestrator import UpdateOrchestrator, UpdateOutcome, UpdateProgress
from update_manager.providers import ProviderRegistry, build_default_registry
from update_manager.reconcile import CheckResult, check_all
from update_manager.state import StateStore

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="um",
        description="Check and apply updates across package managers",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to a YAML settings file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        help="Override log level",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="List pending updates")
    check.add_argument("provider", nargs="?", help="Check only this provider")

    update = commands.add_parser("update", help="Check and apply updates")
    update.add_argument("provider", nargs="?", help="Update only this provider")
    update.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    update.add_argument(
        "--force",
        action="store_true",
        help="Force-update pinned and unknown-version packages where supported",
    )
    update.add_argument(
        "--install-helper",
        action="store_true",
        help="Install the elevation helper without asking if it is missing",
    )
    update.add_argument(
        "--interactive",
        action="store_true",
        help="Retry failed silent installs with installer prompts",
    )

    providers = commands.add_parser("providers", help="List, enable or disable providers")
    providers.add_argument("action", nargs="?", choices=["enable", "disable"])
    providers.add_argument("provider_id", nargs="?")

    ignore = commands.add_parser("ignore", help="Exclude a package from checks")
    ignore.add_argument("package_id")

    unignore = commands.add_parser("unignore", help="Stop ignoring a package")
    unignore.add_argument("package_id")

    commands.add_parser("ignored", help="List ignored packages")

    return parser


def _config_overrides(parsed: argparse.Namespace) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if parsed.log_level:
        result["logging"] = {"level": parsed.log_level}
    return result


def _ask(question: str) -> bool:
    """Ask a yes/no question on the terminal. Defaults to no."""
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


# =============================================================================
# Output
# =============================================================================


def _print_records(registry: ProviderRegistry, result: CheckResult) -> None:
    if not result.records:
        print("Everything is up to date.")
        return

    by_provider: dict[str, list[UpdateRecord]] = {}
    for record in result.records:
        by_provider.setdefault(record.provider_id, []).append(record)

    for provider_id in registry.list_ids():
        records = by_provider.get(provider_id)
        if not records:
            continue
        info = registry.require(provider_id).info
        print(f"{info.icon} {info.display_name} ({len(records)})")
        for record in records:
            line = f"  {record.name} [{record.id}] {record.current_version} -> {record.new_version}"
            if record.status != PackageStatus.AVAILABLE:
                line += f" ({record.notes or record.status.value})"
            print(line)


def _print_progress(event: UpdateProgress) -> None:
    record = event.record
    label = f"[{event.index}/{event.total}] {record.name} {record.new_version}"
    if event.force:
        label += " (force)"

    if event.outcome is None:
        print(f"{label} ...", flush=True)
    elif event.outcome == UpdateOutcome.UPDATED:
        print(f"{label} updated")
    elif event.outcome == UpdateOutcome.UNSUPPORTED:
        print(f"{label} not supported: {event.message}")
    else:
        print(f"{label} failed" + (f": {event.message}" if event.message else ""))


# =============================================================================
# Commands
# =============================================================================


async def _check(
    registry: ProviderRegistry,
    store: StateStore,
    provider_id: str | None,
) -> CheckResult:
    state = store.load()

    if provider_id:
        provider = registry.require(provider_id)
        if not await provider.is_available():
            raise UnavailableError(
                f"{provider.info.display_name} is not installed",
                details={"provider_id": provider_id},
            )
        enabled = [provider_id]
    else:
        enabled = state.enabled_providers()

    result = await check_all(
        registry,
        enabled,
        ignored=state.ignored_packages,
        installed_versions=state.installed_versions,
    )
    store.touch_last_check()
    return result


async def cmd_check(registry: ProviderRegistry, store: StateStore, args: argparse.Namespace) -> int:
    result = await _check(registry, store, args.provider)
    _print_records(registry, result)
    return EXIT_OK


async def cmd_update(registry: ProviderRegistry, store: StateStore, args: argparse.Namespace) -> int:
    result = await _check(registry, store, args.provider)
    _print_records(registry, result)
    if not result.records:
        return EXIT_OK

    if not args.yes and not _ask(f"Apply {len(result.records)} update(s)?"):
        print("Nothing changed.")
        return EXIT_OK

    def confirm_force(info: ProviderInfo, records: Sequence[UpdateRecord]) -> bool:
        if args.force:
            return True
        if args.yes:
            return False
        return _ask(f"Force {len(records)} pinned/unknown {info.display_name} package(s)?")

    def offer_helper_install(info: ProviderInfo) -> bool:
        if args.install_helper:
            return True
        if args.yes:
            return False
        return _ask(f"Elevation helper for {info.display_name} not found. Install it?")

    orchestrator = UpdateOrchestrator(registry, store)
    summary = await orchestrator.apply(
        result.records,
        confirm_force=confirm_force,
        offer_helper_install=offer_helper_install,
        interactive=args.interactive,
        on_progress=_print_progress,
    )

    print(
        f"{len(summary.updated)} updated, {len(summary.failed)} failed, "
        f"{len(summary.unsupported)} unsupported, {len(summary.skipped)} skipped"
    )
    for record in summary.unsupported:
        print(f"  {record.name}: use the application's own updater")

    return EXIT_OK if summary.success else EXIT_FAILED


def cmd_providers(registry: ProviderRegistry, store: StateStore, args: argparse.Namespace) -> int:
    if args.action:
        if not args.provider_id:
            raise InvalidArgumentError(f"providers {args.action} needs a provider id")
        registry.require(args.provider_id)
        store.set_provider_enabled(args.provider_id, args.action == "enable")
        print(f"{args.provider_id} {args.action}d")
        return EXIT_OK

    state = store.load()
    for provider in registry:
        setting = state.providers.get(provider.info.id)
        enabled = setting.enabled if setting else provider.info.default_enabled
        mark = "x" if enabled else " "
        print(f"[{mark}] {provider.info.id:<12} {provider.info.icon} {provider.info.display_name}")
    return EXIT_OK


def cmd_ignore(store: StateStore, args: argparse.Namespace) -> int:
    store.add_ignored(args.package_id)
    print(f"Ignoring {args.package_id}")
    return EXIT_OK


def cmd_unignore(store: StateStore, args: argparse.Namespace) -> int:
    if store.remove_ignored(args.package_id):
        print(f"No longer ignoring {args.package_id}")
    else:
        print(f"{args.package_id} was not ignored")
    return EXIT_OK


def cmd_ignored(store: StateStore) -> int:
    ignored = store.load().ignored_packages
    if not ignored:
        print("No ignored packages.")
    for package_id in ignored:
        print(package_id)
    return EXIT_OK


def run(args: argparse.Namespace, config: AppConfig) -> int:
    """Dispatch a parsed command."""
    registry = build_default_registry(config=config)
    store = StateStore(config.state.path, defaults=registry.defaults())

    if args.command == "check":
        return asyncio.run(cmd_check(registry, store, args))
    if args.command == "update":
        return asyncio.run(cmd_update(registry, store, args))
    if args.command == "providers":
        return cmd_providers(registry, store, args)
    if args.command == "ignore":
        return cmd_ignore(store, args)
    if args.command == "unignore":
        return cmd_unignore(store, args)
    return cmd_ignored(store)


def main(argv: list[str] | None = None) -> int:
    """
    Parse arguments and run a command.

    Returns:
        Process exit status: 0 on success, 1 on failed updates or errors,
        2 for invalid arguments, 130 when interrupted.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, overrides=_config_overrides(args))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except yaml.YAMLError as e:
        reason = str(e).splitlines()[0] if str(e) else type(e).__name__
        print(f"Error: invalid settings file: {reason}", file=sys.stderr)
        return EXIT_USAGE
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        print(f"Error: invalid configuration: {location}: {first['msg']}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(config.logging)

    try:
        return run(args, config)
    except KeyboardInterrupt:
        print("\nCancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except InvalidArgumentError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_USAGE
    except UpdateManagerError as e:
        logger.error(
            "Command failed",
            extra={"error_code": e.error_code, "details": e.details},
        )
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_FAILED
