"""
Pipe-delimited line parsers.

Used for output we shape ourselves (the PowerShell module script prints
"name|current|latest") and for Chocolatey's machine-readable mode
("name|current|available|pinned").
"""

from __future__ import annotations

from update_manager.models import PackageStatus, ParsedPackage

NOTE_PINNED = "Package is pinned"


def _fields(line: str) -> list[str] | None:
    """Return the stripped fields of a line with at least three non-empty leading fields."""
    fields = [field.strip() for field in line.split("|")]
    if len(fields) < 3 or not all(fields[:3]):
        return None
    return fields


def parse_pipe_delimited(output: str) -> list[ParsedPackage]:
    """
    Parse "id|current|latest" lines.

    Extra fields are ignored; lines with fewer than three fields or an empty
    required field are dropped.

    Example:
        >>> [p.id for p in parse_pipe_delimited("PSReadLine|2.3.4|2.4.0")]
        ['PSReadLine']
    """
    packages: list[ParsedPackage] = []

    for line in output.splitlines():
        fields = _fields(line)
        if fields is None:
            continue

        name, current, latest = fields[:3]
        if current == latest:
            continue

        packages.append(
            ParsedPackage(
                id=name,
                name=name,
                current_version=current,
                new_version=latest,
            )
        )

    return packages


def parse_choco_outdated(output: str) -> list[ParsedPackage]:
    """
    Parse `choco outdated -r` output.

    The fourth field is "true" for pinned packages, which `choco upgrade all`
    leaves untouched.
    """
    packages: list[ParsedPackage] = []

    for line in output.splitlines():
        fields = _fields(line)
        if fields is None:
            continue

        name, current, latest = fields[:3]
        if current == latest:
            continue

        pinned = len(fields) > 3 and fields[3].lower() == "true"
        packages.append(
            ParsedPackage(
                id=name,
                name=name,
                current_version=current,
                new_version=latest,
                status=PackageStatus.PINNED if pinned else PackageStatus.AVAILABLE,
                notes=NOTE_PINNED if pinned else None,
            )
        )

    return packages
