# Engine Modules
from .refs import ProjectRef, ByIdentifier, ByName, Resolved, ref_from_fields
from .rename_mapping import RenameMapping, RenameRule, load_rename_mapping
from .resolver import ReferenceResolver, Resolution, ResolutionMethod, load_resolver
from .migrator import ConsistencyMigrator, ReconcileResult, ConsistencyAudit
from .aggregation import AggregationEngine

__all__ = [
    "ProjectRef",
    "ByIdentifier",
    "ByName",
    "Resolved",
    "ref_from_fields",
    "RenameMapping",
    "RenameRule",
    "load_rename_mapping",
    "ReferenceResolver",
    "Resolution",
    "ResolutionMethod",
    "load_resolver",
    "ConsistencyMigrator",
    "ReconcileResult",
    "ConsistencyAudit",
    "AggregationEngine",
]
