"""
Version comparison for package manager output.

Package managers report versions in many shapes: full semver, truncated
("1.0"), four segments ("1.0.0.1"), prerelease suffixes ("2.4.0-beta0"),
or the literal "unknown". The comparator here is lenient on purpose and
never raises.
"""

from __future__ import annotations

from update_manager.logging import get_logger
from update_manager.models import UNKNOWN_VERSION

logger = get_logger(__name__)


def _split_suffix(version: str) -> tuple[str, bool]:
    """Return the base version and whether a prerelease/build suffix was present."""
    base, sep, _ = version.partition("-")
    return base, bool(sep)


def _segments(base: str) -> list[int]:
    """
    Convert a dotted base version into integer segments.

    Non-numeric segments count as 0.

    Raises:
        ValueError: If a segment looks numeric but cannot be converted
            (e.g. superscript digits).
    """
    parts = []
    for segment in base.split("."):
        segment = segment.strip()
        parts.append(int(segment) if segment.isdigit() else 0)
    return parts


def is_newer(current: str, candidate: str) -> bool:
    """
    Check whether candidate denotes a strictly later release than current.

    Args:
        current: Installed version (may be "unknown").
        candidate: Version offered by the package manager.

    Returns:
        True if candidate is newer.

    Example:
        >>> is_newer("2.4.0-beta0", "2.4.0")
        True
        >>> is_newer("1.0", "1.0.1")
        True
        >>> is_newer("1.0.0", "unknown")
        False
    """
    if candidate.strip().lower() == UNKNOWN_VERSION:
        return False
    if current.strip().lower() == UNKNOWN_VERSION:
        return True

    current_base, current_pre = _split_suffix(current)
    candidate_base, candidate_pre = _split_suffix(candidate)

    try:
        current_parts = _segments(current_base)
        candidate_parts = _segments(candidate_base)
    except ValueError:
        logger.debug(
            "Falling back to string comparison",
            extra={"current": current, "candidate": candidate},
        )
        return candidate > current

    for i in range(max(len(current_parts), len(candidate_parts))):
        cur = current_parts[i] if i < len(current_parts) else 0
        new = candidate_parts[i] if i < len(candidate_parts) else 0
        if new != cur:
            return new > cur

    # Same base: a release is newer than a prerelease of it
    return current_pre and not candidate_pre
