"""
Pattern-matched line parser for tool-version managers.

proto prints one tool per line in the form "node 20.10.0 -> 20.11.0"; some
versions use a dash between the tool and the version or the Unicode arrow.
"""

from __future__ import annotations

import re

from update_manager.models import ParsedPackage

ARROW_LINE_RE = re.compile(
    r"^(?P<tool>\w[\w.-]*?)\s*[-–]?\s*"
    r"(?P<current>\d[\w.+-]*?)\s*(?:->|→)\s*"
    r"(?P<latest>\d[\w.+-]*)"
)


def parse_arrow_lines(output: str) -> list[ParsedPackage]:
    """
    Parse "<tool> <current> -> <latest>" lines.

    Lines that do not match are ignored.

    Args:
        output: Raw command output.

    Returns:
        One package per matching line, in input order.

    Example:
        >>> [p.id for p in parse_arrow_lines("node 20.10.0 -> 20.11.0")]
        ['node']
    """
    packages: list[ParsedPackage] = []

    for line in output.splitlines():
        match = ARROW_LINE_RE.match(line.strip())
        if match is None:
            continue

        tool = match.group("tool")
        current = match.group("current")
        latest = match.group("latest")
        if current == latest:
            continue

        packages.append(
            ParsedPackage(
                id=tool,
                name=tool,
                current_version=current,
                new_version=latest,
            )
        )

    return packages
