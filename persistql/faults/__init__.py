"""
PersistQL Faults - Structured error handling.

Every error raised by the manifest pipeline is a typed fault with a stable
code, a domain and a severity. FATAL faults abort the build pass.
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    ConfigMissingFault,
    ConfigInvalidFault,
    DocumentFault,
    DocumentParseFault,
    ManifestFault,
    ManifestCorruptFault,
    FilesystemFault,
)

__all__ = [
    # Core types
    "Fault",
    "FaultDomain",
    "Severity",
    # Config
    "ConfigFault",
    "ConfigMissingFault",
    "ConfigInvalidFault",
    # Document
    "DocumentFault",
    "DocumentParseFault",
    # Manifest
    "ManifestFault",
    "ManifestCorruptFault",
    # IO
    "FilesystemFault",
]
