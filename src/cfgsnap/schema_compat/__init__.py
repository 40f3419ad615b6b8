"""
Schema evolution gate for the ConfigSnapshot wire schema.

Extracts an order-preserving structural snapshot from a FlatBuffers
schema, checks it against the accepted baseline under an append-only
policy, and only then updates the baseline and regenerates bindings.

Public API::

    from cfgsnap.schema_compat import (
        # Models
        StructuralSnapshot,
        EnumEntry,
        CompatibilityViolation,
        ViolationKind,
        GateResult,
        # Extraction and checking
        SchemaExtractor,
        extract_structure,
        CompatibilityChecker,
        check_compatibility,
        # Baseline, codegen, gate
        FileBaselineStore,
        MemoryBaselineStore,
        FlatcCodegen,
        CodegenTarget,
        GateConfig,
        GateConfigLoader,
        SchemaGate,
    )
"""

from cfgsnap.schema_compat.baseline import (
    BaselineStore,
    FileBaselineStore,
    MemoryBaselineStore,
)
from cfgsnap.schema_compat.checker import CompatibilityChecker, check_compatibility
from cfgsnap.schema_compat.codegen import DEFAULT_TARGETS, CodegenTarget, FlatcCodegen
from cfgsnap.schema_compat.extractor import SchemaExtractor, extract_structure
from cfgsnap.schema_compat.gate import SchemaGate
from cfgsnap.schema_compat.loader import GateConfig, GateConfigLoader
from cfgsnap.schema_compat.schema import (
    CompatibilityViolation,
    EnumEntry,
    GateResult,
    StructuralSnapshot,
    ViolationKind,
)

__all__ = [
    # Models
    "StructuralSnapshot",
    "EnumEntry",
    "CompatibilityViolation",
    "ViolationKind",
    "GateResult",
    # Extraction and checking
    "SchemaExtractor",
    "extract_structure",
    "CompatibilityChecker",
    "check_compatibility",
    # Baseline, codegen, gate
    "BaselineStore",
    "FileBaselineStore",
    "MemoryBaselineStore",
    "FlatcCodegen",
    "CodegenTarget",
    "DEFAULT_TARGETS",
    "GateConfig",
    "GateConfigLoader",
    "SchemaGate",
]
