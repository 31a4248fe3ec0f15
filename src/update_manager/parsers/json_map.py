"""
Parser for JSON "outdated" maps printed by npm and pnpm.

Both print an object keyed by package name:

    {"typescript": {"current": "5.2.0", "wanted": "5.2.0", "latest": "5.3.0"}}
"""

from __future__ import annotations

import json
from typing import Any

from update_manager.logging import get_logger
from update_manager.models import ParsedPackage

logger = get_logger(__name__)


def parse_outdated_json(output: str) -> list[ParsedPackage]:
    """
    Parse an outdated-package JSON object.

    Invalid JSON yields an empty list, which is indistinguishable from a
    system with nothing outdated; the failure is only logged.

    Args:
        output: Raw JSON text.

    Returns:
        One package per entry whose current and latest versions differ.

    Example:
        >>> out = '{"typescript": {"current": "5.2.0", "latest": "5.3.0"}}'
        >>> [p.new_version for p in parse_outdated_json(out)]
        ['5.3.0']
    """
    try:
        data: Any = json.loads(output)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug("Outdated output is not JSON", extra={"error": str(e)})
        return []

    if not isinstance(data, dict):
        return []

    packages: list[ParsedPackage] = []
    for name, info in data.items():
        if not isinstance(info, dict):
            continue

        current = info.get("current")
        latest = info.get("latest")
        if not isinstance(current, str) or not isinstance(latest, str):
            continue
        if not current or not latest or current == latest:
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
