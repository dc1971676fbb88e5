"""
Migration Schemas

Pydantic models for the reconciliation endpoints.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from ..engine.rename_mapping import RenameRule


class ReconcileRequest(BaseModel):
    """
    Run reconciliation.

    When renames is omitted the configured mapping file is used.
    """
    renames: Optional[List[RenameRule]] = None
    version: int = Field(1, ge=1)
    dry_run: bool = False

    model_config = {"extra": "forbid"}


class ReconcileResponse(BaseModel):
    """Outcome of a reconciliation run."""
    updated_entry_count: int
    updated_log_count: int
    failed_log_count: int
    unmatched_names: List[str]
    dry_run: bool


class PropagateResponse(BaseModel):
    project_id: str
    project_name: str
    updated_entry_count: int


class ConsistencyAuditResponse(BaseModel):
    """Counts of entries per consistency state."""
    resolved: int
    stale_name: int
    missing_name: int
    name_only: int
    orphaned: int
    stale_names: List[str]
    unmatched_names: List[str]
