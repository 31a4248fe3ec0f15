"""
Error types for the update manager.

This module defines the UpdateManagerError base class and subclasses for
domain-specific errors. Provider adapters and the orchestrator raise these
instead of returning ad-hoc status codes, so callers can tell a generic
failure from one that needs an explanation (e.g. "use the app's own updater").
"""

from __future__ import annotations

from typing import Any


class UpdateManagerError(Exception):
    """
    Base exception class for update manager errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_argument",
            "unavailable", "timeout", "unsupported_update", "state").
        message: Human-readable error message.
        details: Optional structured details (e.g., command, package id).

    Example:
        >>> raise UpdateManagerError(
        ...     error_code="invalid_argument",
        ...     message="Provider 'foo' not found",
        ...     details={"provider": "foo"},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize an UpdateManagerError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for serialization.

        Returns:
            Dictionary with error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(UpdateManagerError):
    """
    Error raised for invalid caller input, such as an unknown provider id.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class UnavailableError(UpdateManagerError):
    """
    Error raised when a package manager or remote registry cannot be reached.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an UnavailableError."""
        super().__init__(error_code="unavailable", message=message, details=details)


class CommandTimeoutError(UpdateManagerError):
    """
    Error raised when an external command exceeded its timeout and was killed.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a CommandTimeoutError."""
        super().__init__(error_code="timeout", message=message, details=details)


class UnsupportedUpdateError(UpdateManagerError):
    """
    Error raised when a package manager reports that a package cannot be
    upgraded through it and must be updated by its own updater.

    This is a permanent condition, not a transient failure. Callers should
    report it separately from generic failures.

    Attributes:
        package_id: Id of the package that cannot be upgraded.
        provider_id: Id of the provider that refused the upgrade.
    """

    def __init__(
        self,
        package_id: str,
        provider_id: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize an UnsupportedUpdateError."""
        merged = {"package_id": package_id, "provider_id": provider_id}
        merged.update(details or {})
        super().__init__(
            error_code="unsupported_update",
            message=message
            or f"{package_id} must be updated with its own updater",
            details=merged,
        )
        self.package_id = package_id
        self.provider_id = provider_id


class StateError(UpdateManagerError):
    """
    Error raised when the persisted state file cannot be written.

    Unreadable or malformed state is never raised; it falls back to defaults.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a StateError."""
        super().__init__(error_code="state", message=message, details=details)
