"""
PersistQL - persisted-query manifests for GraphQL operations.

Complete pipeline of:
- Aggregator: collects GraphQL text contributed by the modules of a build pass
- Normalizer: splits it into operations, dedupes fragments, renders canonical text
- Manifest: sorted, content-addressed mapping of operation text to id
- Coordinator: publishes manifests from a producing pass to consumer passes
- Plugin: Standalone / Consumer wiring onto build pass hooks
- Faults: structured error handling with fault domains
"""

__version__ = "0.3.0"

from .aggregator import Corpus, QueryAggregator, QueryContribution
from .build import BuildPass, ModuleRecord
from .config import ConfigLoader, Consumer, PluginConfig, PluginMode, Standalone
from .coordinator import (
    CoordinatorState,
    GateState,
    ManifestCoordinator,
    ManifestSubscriber,
    PublicationRecord,
    ResolutionGate,
)
from .faults import (
    ConfigInvalidFault,
    ConfigMissingFault,
    DocumentParseFault,
    Fault,
    FaultDomain,
    ManifestCorruptFault,
    Severity,
)
from .hashing import OperationHasher, operation_id
from .manifest import Manifest, ManifestBuilder, ManifestDiff, module_source
from .normalizer import DocumentNormalizer
from .plugin import PersistedQueryPlugin
from .virtual import VirtualModuleStore

__all__ = [
    # Pipeline
    "QueryContribution",
    "QueryAggregator",
    "Corpus",
    "DocumentNormalizer",
    "OperationHasher",
    "operation_id",
    "Manifest",
    "ManifestBuilder",
    "ManifestDiff",
    "module_source",
    # Coordination
    "ManifestCoordinator",
    "ManifestSubscriber",
    "PublicationRecord",
    "CoordinatorState",
    "ResolutionGate",
    "GateState",
    # Build host model
    "BuildPass",
    "ModuleRecord",
    "VirtualModuleStore",
    "PersistedQueryPlugin",
    # Config
    "PluginConfig",
    "PluginMode",
    "Standalone",
    "Consumer",
    "ConfigLoader",
    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigMissingFault",
    "ConfigInvalidFault",
    "DocumentParseFault",
    "ManifestCorruptFault",
]
