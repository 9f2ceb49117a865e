"""
Custom exception hierarchy for safenpm.

This module defines structured exception types used across safenpm.
All exceptions inherit from :class:`SafeNpmError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Registry failures (:class:`NotFoundError`, :class:`TransportError`) and
range failures (:class:`InvalidRangeError`) are per-package: the batch
resolver converts them into failure records and never lets them abort
sibling resolutions.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional


class SafeNpmError(Exception):
    """Base exception for all safenpm errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class RegistryError(SafeNpmError):
    """Base class for failures while looking up package metadata.

    Args:
        message: Error description.
        package_name: Name of the package being looked up.
        details: Additional structured metadata.
    """

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        merged: MutableMapping[str, Any] = {}
        _add_if(merged, "package", package_name)
        if details:
            merged.update(details)

        super().__init__(message, merged)
        self.package_name = package_name


class NotFoundError(RegistryError):
    """Raised when the registry or fixture has no record for a package."""


class TransportError(RegistryError):
    """Raised when metadata cannot be fetched or decoded.

    Covers network failures, timeouts, non-2xx HTTP statuses and malformed
    payloads.

    Args:
        message: Error description.
        package_name: Name of the package being looked up.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, package_name=package_name, details=details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class InvalidRangeError(SafeNpmError):
    """Raised when a range expression is not valid npm semver syntax.

    Args:
        message: Error description.
        range_spec: The offending range expression.
        package_name: Package the range was requested for.
    """

    __slots__ = ("range_spec", "package_name")

    def __init__(
        self,
        message: str,
        *,
        range_spec: Optional[str] = None,
        package_name: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "range", range_spec)
        _add_if(details, "package", package_name)

        super().__init__(message, details)

        self.range_spec = range_spec
        self.package_name = package_name


class ConfigError(SafeNpmError):
    """Raised when configuration is missing, malformed, or inconsistent.

    Args:
        message: Error description.
        config_path: Path to the configuration file involved.
        option: Name of the offending option.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class FileOperationError(SafeNpmError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/backup).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ManifestError(SafeNpmError):
    """Raised when package.json or a package spec cannot be used.

    Args:
        message: Error description.
        file_path: Path to the manifest, when one is involved.
    """

    __slots__ = ("file_path",)

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)

        super().__init__(message, details)

        self.file_path = file_path


class InstallError(SafeNpmError):
    """Raised when the package manager cannot be launched.

    Args:
        message: Error description.
        command: The command line that was attempted.
        returncode: Exit status, when the process ran at all.
    """

    __slots__ = ("command", "returncode")

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        returncode: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "command", command)
        _add_if(details, "returncode", returncode)

        super().__init__(message, details)

        self.command = command
        self.returncode = returncode
