"""
Fixed-column table parsers.

Some package managers print aligned tables whose cells may contain spaces
(display names such as "Visual Studio Code"). Splitting on whitespace breaks
those rows, so column boundaries are taken from the character offsets of the
header tokens instead.

winget prints one table per section. Sections other than the first are
introduced by a message ("... have a pin that needs to be removed ...",
"... require explicit targeting ...") a few lines above their header; that
message is the only indication that the rows below it are pinned. Detecting
it is a positional heuristic and may miss layouts winget has not shipped yet.
"""

from __future__ import annotations

import re

from update_manager.models import UNKNOWN_VERSION, PackageStatus, ParsedPackage

# Lines scanned above a section header for annotation markers
ANNOTATION_WINDOW = 10

PIN_MARKERS = ("pin that needs", "pins that prevent")
EXPLICIT_MARKERS = ("explicit targeting", "require explicit")

NOTE_PINNED = "Package is pinned"
NOTE_EXPLICIT = "Requires explicit targeting"
NOTE_UNKNOWN = "Current version unknown"
NOTE_HELD = "Package is held"

_SEPARATOR_RE = re.compile(r"^\s*-{10,}\s*$")
_FOOTER_RE = re.compile(r"^\s*\d+\s+(?:upgrades?|upgrade\(s\))\s+available", re.I)


def _split_lines(output: str) -> list[str]:
    """
    Split output into lines, dropping progress-spinner residue.

    Only a newline ends a line. A bare carriage return is the spinner
    rewinding the cursor, so only the text after the last one is kept.
    """
    lines = []
    for line in output.split("\n"):
        line = line.rstrip("\r")
        lines.append(line.rsplit("\r", 1)[-1].rstrip())
    return lines


def _find_column(header: str, title: str) -> int:
    """Return the offset of a header title as a whole word, or -1."""
    match = re.search(rf"(?<!\S){re.escape(title)}(?!\S)", header)
    return match.start() if match else -1


def _slice(line: str, start: int, end: int | None) -> str:
    if start < 0:
        return ""
    return line[start:end].strip() if end is not None else line[start:].strip()


def _is_winget_header(line: str) -> bool:
    return all(_find_column(line, title) >= 0 for title in ("Name", "Id", "Version"))


def _is_pin_message(line: str) -> bool:
    lowered = line.lower()
    return any(marker in lowered for marker in PIN_MARKERS) or "package(s) have" in lowered


def _ends_section(line: str) -> bool:
    return not line.strip() or bool(_FOOTER_RE.match(line)) or _is_pin_message(line)


def _section_annotations(lines: list[str]) -> tuple[bool, bool]:
    """Return (pinned, explicit) for the marker lines above a section header."""
    text = " ".join(lines).lower()
    pinned = any(marker in text for marker in PIN_MARKERS)
    explicit = any(marker in text for marker in EXPLICIT_MARKERS)
    return pinned, explicit


def _parse_winget_row(
    line: str,
    columns: dict[str, int],
    pinned: bool,
    explicit: bool,
) -> ParsedPackage | None:
    id_col = columns["Id"]
    version_col = columns["Version"]
    available_col = columns["Available"]
    source_col = columns["Source"]

    if available_col < 0:
        return None

    name = _slice(line, columns["Name"], id_col)
    package_id = _slice(line, id_col, version_col)
    current = _slice(line, version_col, available_col)
    new = _slice(line, available_col, source_col if source_col > 0 else None)
    source = _slice(line, source_col, None) if source_col > 0 else None

    # Wide characters in a name push the remaining cells off their header
    # offsets; the cells after the name never contain spaces, so take them
    # from the end of the line
    if " " in package_id or " " in new:
        tokens = line.split()
        count = 4 if source_col > 0 else 3
        if len(tokens) <= count:
            return None
        name = " ".join(tokens[:-count])
        package_id, current, new = tokens[-count : len(tokens) - count + 3]
        source = tokens[-1] if source_col > 0 else None

    if not package_id or not new:
        return None
    if current == new:
        return None

    status = PackageStatus.AVAILABLE
    notes: str | None = None

    if explicit:
        notes = NOTE_EXPLICIT

    if not current or current.lower() == UNKNOWN_VERSION:
        status = PackageStatus.UNKNOWN
        notes = NOTE_UNKNOWN
        current = UNKNOWN_VERSION

    if pinned:
        status = PackageStatus.PINNED
        notes = NOTE_PINNED

    return ParsedPackage(
        id=package_id,
        name=name or package_id,
        current_version=current,
        new_version=new,
        status=status,
        source=source or None,
        notes=notes,
    )


def parse_winget_upgrade(output: str) -> list[ParsedPackage]:
    """
    Parse `winget upgrade` output, including every section it prints.

    Args:
        output: Raw stdout of `winget upgrade --include-pinned`.

    Returns:
        Parsed packages in the order winget listed them.

    Example:
        >>> out = '''Name   Id       Version Available Source
        ... ------------------------------------------
        ... Git    Git.Git  2.43.0  2.44.0    winget
        ... 1 upgrade(s) available.'''
        >>> [p.id for p in parse_winget_upgrade(out)]
        ['Git.Git']
    """
    lines = _split_lines(output)
    packages: list[ParsedPackage] = []

    # Annotation window never reaches back into a previous section's rows
    window_floor = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        is_section = (
            _is_winget_header(line)
            and i + 1 < len(lines)
            and _SEPARATOR_RE.match(lines[i + 1]) is not None
        )
        if not is_section:
            i += 1
            continue

        window = lines[max(window_floor, i - ANNOTATION_WINDOW) : i]
        pinned, explicit = _section_annotations(window)
        columns = {
            title: _find_column(line, title)
            for title in ("Name", "Id", "Version", "Available", "Source")
        }

        j = i + 2
        while j < len(lines) and not _ends_section(lines[j]):
            package = _parse_winget_row(lines[j], columns, pinned, explicit)
            if package is not None:
                packages.append(package)
            j += 1

        window_floor = j
        i = j

    return packages


def parse_scoop_status(output: str) -> list[ParsedPackage]:
    """
    Parse `scoop status` output.

    Rows whose Info column mentions "Held" are reported as pinned, since
    `scoop update *` leaves held apps alone.

    Args:
        output: Raw stdout of `scoop status`.

    Returns:
        Parsed packages in listing order.
    """
    lines = _split_lines(output)
    packages: list[ParsedPackage] = []
    columns: dict[str, int] | None = None

    for line in lines:
        if columns is None:
            if _find_column(line, "Name") >= 0 and "Installed Version" in line:
                columns = {
                    title: line.find(title)
                    for title in (
                        "Name",
                        "Installed Version",
                        "Latest Version",
                        "Missing Dependencies",
                        "Info",
                    )
                }
                if columns["Latest Version"] < 0:
                    columns = None
            continue

        if not line.strip() or line.lstrip().startswith("-"):
            continue

        installed_col = columns["Installed Version"]
        latest_col = columns["Latest Version"]
        info_col = columns["Info"]
        later = [pos for pos in columns.values() if pos > latest_col]
        latest_end = min(later) if later else None

        name = _slice(line, columns["Name"], installed_col)
        current = _slice(line, installed_col, latest_col)
        new = _slice(line, latest_col, latest_end)
        info = _slice(line, info_col, None) if info_col > 0 else ""

        if not name or not new or current == new:
            continue

        held = "held" in info.lower()
        packages.append(
            ParsedPackage(
                id=name,
                name=name,
                current_version=current or UNKNOWN_VERSION,
                new_version=new,
                status=PackageStatus.PINNED if held else PackageStatus.AVAILABLE,
                notes=NOTE_HELD if held else None,
            )
        )

    return packages
