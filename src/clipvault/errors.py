"""
Exception hierarchy for clipvault.

All clipvault exceptions inherit from ClipVaultError, allowing callers to
catch every library-specific failure with a single except clause.

Exception Categories:
    - ConfigError: Configuration file missing, unreadable or invalid
    - InvalidQueryError: Caller passed an unusable argument to the store
    - StorageError: Database operation failed

Missing records are not errors: lookups return None or False and the
fingerprint miss inside insert-or-touch simply takes the insert branch.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Configuration errors: 1xxx
ERROR_CONFIG_INVALID = 1001

# Query errors: 2xxx
ERROR_QUERY_INVALID = 2001

# Storage errors: 5xxx
ERROR_STORAGE_CONNECTION = 5001
ERROR_STORAGE_WRITE = 5002
ERROR_STORAGE_READ = 5003


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class ClipVaultError(Exception):
    """
    Base exception for all clipvault errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigError(ClipVaultError):
    """Raised when a configuration file cannot be loaded or validated."""

    path: str = ""
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid configuration {self.path}: {self.reason}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        if not self.suggestion:
            self.suggestion = "Check the YAML syntax and field names in the config file"
        self.context.update({
            "path": self.path,
            "reason": self.reason,
        })


# =============================================================================
# Query Errors
# =============================================================================


@dataclass
class InvalidQueryError(ClipVaultError):
    """
    Raised when an operation receives an argument it cannot use.

    Examples are a negative search limit, a negative eviction capacity or
    a non-integer record id in a batch lookup.

    Attributes:
        argument: Name of the offending argument
        value: The rejected value (as repr)
    """

    argument: str = ""
    value: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid value for {self.argument}: {self.value}"
        if self.code == 0:
            self.code = ERROR_QUERY_INVALID
        self.context.update({
            "argument": self.argument,
            "value": self.value,
        })


# =============================================================================
# Storage Errors
# =============================================================================


@dataclass
class StorageError(ClipVaultError):
    """
    Base class for storage/database errors.

    Attributes:
        operation: The operation that failed (e.g., "insert_or_touch", "search")
    """

    operation: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context["operation"] = self.operation


@dataclass
class StorageConnectionError(StorageError):
    """Raised when the history database cannot be opened or created."""

    db_path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to open history database: {self.db_path}"
        if self.code == 0:
            self.code = ERROR_STORAGE_CONNECTION
        if not self.suggestion:
            self.suggestion = "Check that the data directory exists and is writable"
        super().__post_init__()
        self.context["db_path"] = self.db_path


@dataclass
class StorageWriteError(StorageError):
    """Raised when a write operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database write failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_WRITE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class StorageReadError(StorageError):
    """Raised when a read operation fails."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Database read failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_STORAGE_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error
