"""
Whitespace-gap table parsers.

Several tools print tables whose columns are separated by runs of two or
more spaces, sometimes framed with box-drawing characters:

    ┌──────────┬─────────┬────────┬────────┐
    │ Package  │ Current │ Update │ Latest │
    ├──────────┼─────────┼────────┼────────┤
    │ prettier │ 3.0.0   │ 3.0.0  │ 3.1.0  │
    └──────────┴─────────┴────────┴────────┘

The border characters are replaced by spaces before splitting, which keeps
the cell gaps at two or more characters.
"""

from __future__ import annotations

import re

from update_manager.models import ParsedPackage

# Box-drawing block (U+2500-U+257F) plus the ASCII pipe used by some tools
_BORDER_RE = re.compile(r"[─-╿|]")
_GAP_RE = re.compile(r"\s{2,}")


def split_cells(line: str) -> list[str]:
    """
    Split a table line into cells.

    Args:
        line: One line of table output.

    Returns:
        Non-empty cells; an empty list for border-only or blank lines.
    """
    stripped = _BORDER_RE.sub("  ", line).strip()
    if not stripped:
        return []
    return [cell for cell in _GAP_RE.split(stripped) if cell]


def parse_box_table(
    output: str,
    *,
    title: str,
    current_index: int = 1,
    latest_index: int = 2,
) -> list[ParsedPackage]:
    """
    Parse a bordered (or borderless) gap table.

    Args:
        output: Raw command output.
        title: Title of the first column; the row starting with it is the
            header and is skipped.
        current_index: Cell index of the installed version.
        latest_index: Cell index of the version to upgrade to.

    Returns:
        One package per data row, in table order.
    """
    packages: list[ParsedPackage] = []
    needed = max(current_index, latest_index) + 1

    for line in output.splitlines():
        cells = split_cells(line)
        if len(cells) < needed or cells[0] == title:
            continue

        name = cells[0]
        current = cells[current_index]
        latest = cells[latest_index]
        if not current[:1].isdigit() or current == latest:
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


def parse_gap_table(output: str) -> list[ParsedPackage]:
    """
    Parse pnpm's table layout of `pnpm outdated`.

    The layout is "Package  Current  Wanted  Latest": the third cell is the
    wanted version, so the latest version is the fourth cell. Rows with
    fewer than four cells carry no latest version and are skipped.

    Args:
        output: Raw stdout of `pnpm outdated -g` when it is not JSON.

    Returns:
        One package per data row, in table order.
    """
    packages: list[ParsedPackage] = []

    for line in output.splitlines():
        cells = split_cells(line)
        if len(cells) < 4 or cells[0] == "Package":
            continue

        name, current, latest = cells[0], cells[1], cells[3]
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
