"""
PersistQL Faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- DOCUMENT faults
- MANIFEST faults
- IO faults
"""

from typing import Any, Optional
from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            retryable=False,
            metadata=metadata,
        )


class ConfigMissingFault(ConfigFault):
    """Required configuration is missing."""

    def __init__(self, key: str, **kwargs):
        super().__init__(
            code="CONFIG_MISSING",
            message=f"Required configuration key '{key}' is missing",
            metadata={"key": key, **kwargs.get("metadata", {})},
        )


class ConfigInvalidFault(ConfigFault):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# DOCUMENT Faults
# ============================================================================

class DocumentFault(Fault):
    """Base class for GraphQL document faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.DOCUMENT,
            severity=severity,
            retryable=False,
            metadata=metadata,
        )


class DocumentParseFault(DocumentFault):
    """
    The aggregated GraphQL corpus could not be parsed.

    Always fatal for the build pass: no partial manifest is published.
    """

    def __init__(
        self,
        reason: str,
        *,
        line: Optional[int] = None,
        column: Optional[int] = None,
        **kwargs,
    ):
        self.line = line
        self.column = column
        where = f" at {line}:{column}" if line is not None else ""
        super().__init__(
            code="DOCUMENT_PARSE_ERROR",
            message=f"GraphQL corpus failed to parse{where}: {reason}",
            metadata={
                "reason": reason,
                "line": line,
                "column": column,
                **kwargs.get("metadata", {}),
            },
        )


# ============================================================================
# MANIFEST Faults
# ============================================================================

class ManifestFault(Fault):
    """Base class for manifest faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.MANIFEST,
            severity=severity,
            retryable=False,
            metadata=metadata,
        )


class ManifestCorruptFault(ManifestFault):
    """A serialized manifest cannot be read back."""

    def __init__(self, reason: str, **kwargs):
        super().__init__(
            code="MANIFEST_CORRUPT",
            message=f"Manifest is corrupt: {reason}",
            metadata={"reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# IO Faults
# ============================================================================

class FilesystemFault(Fault):
    """Filesystem operation failed."""

    def __init__(self, operation: str, path: str, reason: str, **kwargs):
        super().__init__(
            code="FILESYSTEM_FAULT",
            message=f"Filesystem {operation} on '{path}' failed: {reason}",
            domain=FaultDomain.IO,
            metadata={"operation": operation, "path": path, "reason": reason, **kwargs.get("metadata", {})},
        )
