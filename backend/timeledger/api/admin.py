"""
Admin API

Operator-triggered consistency maintenance.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..engine.migrator import ConsistencyMigrator
from ..engine.rename_mapping import RenameMapping, configured_rename_mapping
from ..schemas.migration import (
    ReconcileRequest,
    ReconcileResponse,
    PropagateResponse,
    ConsistencyAuditResponse,
)
from ..tracer import trace_section, trace_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(
    request: ReconcileRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Reconcile every stored task entry against the project directory.

    Uses the rename rules in the request, or the configured mapping
    file when none are given.
    """
    trace_section("Reconcile")
    if request.renames is None:
        mapping = configured_rename_mapping()
    else:
        mapping = RenameMapping(version=request.version, renames=request.renames)
    trace_input("api.admin", "rename_rules", len(mapping))

    result = await ConsistencyMigrator(db).reconcile(mapping, dry_run=request.dry_run)
    return ReconcileResponse(**result.to_dict())


@router.post("/projects/{project_id}/propagate", response_model=PropagateResponse)
async def propagate_rename(
    project_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Push a project's current name to every entry carrying its id."""
    name, updated = await ConsistencyMigrator(db).propagate_project_name(project_id)
    return PropagateResponse(
        project_id=project_id,
        project_name=name,
        updated_entry_count=updated,
    )


@router.get("/consistency", response_model=ConsistencyAuditResponse)
async def consistency_audit(
    db: AsyncSession = Depends(get_db),
):
    """Count entries per consistency state without changing anything."""
    audit = await ConsistencyMigrator(db).audit(configured_rename_mapping())
    return ConsistencyAuditResponse(**audit.to_dict())
