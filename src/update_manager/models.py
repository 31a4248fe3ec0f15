"""
Data models shared by parsers, providers, and the orchestration layers.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class PackageStatus(str, Enum):
    """
    Status of a discovered update.

    - available: can be applied normally
    - pinned: the package manager excludes it from upgrades (pin, hold)
    - unknown: the installed version could not be determined
    - error: the record could not be evaluated
    """

    AVAILABLE = "available"
    PINNED = "pinned"
    UNKNOWN = "unknown"
    ERROR = "error"


UNKNOWN_VERSION = "unknown"


class ParsedPackage(BaseModel):
    """
    One row of parser output, before it is attributed to a provider.

    Attributes:
        id: Provider-unique package identity.
        name: Display name (may differ from id).
        current_version: Installed version, or "unknown".
        new_version: Version the package manager would install.
        status: Update status.
        source: Origin or repository tag, if reported.
        notes: Explanation for a non-available status.
    """

    id: str
    name: str
    current_version: str
    new_version: str
    status: PackageStatus = PackageStatus.AVAILABLE
    source: str | None = None
    notes: str | None = None


class UpdateRecord(ParsedPackage):
    """A pending update attributed to the provider that reported it."""

    provider_id: str = Field(..., description="Id of the reporting provider")


class UpdateOptions(BaseModel):
    """
    Behavioral flags for a single package update.

    Attributes:
        force: Retry with the elevation helper and pass the manager's force
            flag, where supported.
        interactive: Drop silent/unattended flags so installers can prompt.
    """

    force: bool = False
    interactive: bool = False


class UpdateResult(BaseModel):
    """Outcome of a provider's update_all()."""

    success: bool = True
    updated: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class ProviderInfo(BaseModel):
    """
    Static descriptor of a provider.

    Attributes:
        id: Registry key, also used in the state file.
        display_name: Human-readable name.
        icon: Cosmetic marker for listings.
        requires_elevated_rights: Whether updates usually need admin rights.
        default_enabled: Whether the provider is enabled in a fresh state file.
        supports_interactive: Whether update_package honors the interactive
            flag, so a failed silent update can be retried with prompts.
    """

    id: str
    display_name: str
    icon: str = ""
    requires_elevated_rights: bool = False
    default_enabled: bool = True
    supports_interactive: bool = False


def make_record(provider_id: str, parsed: ParsedPackage) -> UpdateRecord:
    """Attribute a parsed row to a provider."""
    return UpdateRecord(provider_id=provider_id, **parsed.model_dump())
