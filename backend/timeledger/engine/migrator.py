"""
Consistency Migrator

Batch reconciliation of stored task entries against the project
directory. Brings every entry to "has both id and name, and the name
matches the directory" without one big transaction:

- each log is saved on its own; a failed save is logged, counted and
  skipped so the batch carries on
- a log removed or replaced while the batch runs is skipped
- running it again with the same mapping changes nothing
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError
from ..models.task_log import TaskLog, TaskLogEntry
from ..store.directory import ProjectDirectory
from ..store.task_logs import TaskLogStore
from ..tracer import traced, trace_step, trace_output
from .refs import ByIdentifier, ByName, Resolved, ref_from_fields
from .rename_mapping import RenameMapping
from .resolver import ReferenceResolver

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Summary of a reconcile run."""
    updated_entry_count: int = 0
    updated_log_count: int = 0
    failed_log_count: int = 0
    unmatched_names: Set[str] = field(default_factory=set)
    dry_run: bool = False

    def to_dict(self) -> dict:
        return {
            "updated_entry_count": self.updated_entry_count,
            "updated_log_count": self.updated_log_count,
            "failed_log_count": self.failed_log_count,
            "unmatched_names": sorted(self.unmatched_names),
            "dry_run": self.dry_run,
        }


@dataclass
class ConsistencyAudit:
    """How many entries are in each consistency state."""
    resolved: int = 0
    stale_name: int = 0
    missing_name: int = 0
    name_only: int = 0
    orphaned: int = 0
    stale_names: Set[str] = field(default_factory=set)
    unmatched_names: Set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "resolved": self.resolved,
            "stale_name": self.stale_name,
            "missing_name": self.missing_name,
            "name_only": self.name_only,
            "orphaned": self.orphaned,
            "stale_names": sorted(self.stale_names),
            "unmatched_names": sorted(self.unmatched_names),
        }


class ConsistencyMigrator:
    """
    Rewrites cached project references on stored task entries.

    reconcile() walks the whole corpus using exact match, the rename
    mapping and then fuzzy matching. propagate_rename() is the narrow
    id-keyed variant used after a project is renamed.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = TaskLogStore(db)
        self.directory = ProjectDirectory(db)

    @traced("engine.migrator")
    async def reconcile(
        self,
        rename_mapping: Optional[RenameMapping] = None,
        dry_run: bool = False,
    ) -> ReconcileResult:
        """
        Reconcile every stored entry.

        Args:
            rename_mapping: known renames to try after an exact match fails
            dry_run: compute the result without saving anything

        Returns:
            ReconcileResult with counts and the names nothing matched
        """
        resolver = ReferenceResolver(
            await self.directory.snapshot(),
            rename_mapping=rename_mapping,
            fuzzy=True,
        )
        result = ReconcileResult(dry_run=dry_run)

        log_ids = await self.store.all_ids()
        trace_step("engine.migrator", f"Reconciling {len(log_ids)} task logs (dry_run={dry_run})")

        for log_id in log_ids:
            task_log = await self.store.find_by_id(log_id)
            if task_log is None:
                logger.info(f"Task log {log_id} disappeared during reconcile, skipping")
                continue

            changes = self._plan_log(task_log, resolver, result.unmatched_names)
            if not changes:
                continue

            if dry_run:
                result.updated_entry_count += len(changes)
                result.updated_log_count += 1
                continue

            for entry, project_id, project_name in changes:
                entry.project_id = project_id
                entry.project_name = project_name

            try:
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                result.failed_log_count += 1
                logger.error(f"Failed to save reconciled task log {log_id}: {e}")
                continue

            result.updated_entry_count += len(changes)
            result.updated_log_count += 1
            if result.updated_log_count % 50 == 0:
                logger.info(f"Reconciled {result.updated_log_count} task logs...")

        logger.info(
            f"Reconcile finished: {result.updated_entry_count} entries in "
            f"{result.updated_log_count} logs updated, {result.failed_log_count} failed, "
            f"{len(result.unmatched_names)} unmatched names"
        )
        trace_output("engine.migrator", "result", result.to_dict())
        return result

    def _plan_log(
        self,
        task_log: TaskLog,
        resolver: ReferenceResolver,
        unmatched: Set[str],
    ) -> List[Tuple[TaskLogEntry, str, str]]:
        """Entries of one log that need rewriting, with their new values."""
        changes = []
        for entry in task_log.entries:
            try:
                ref = ref_from_fields(entry.project_id, entry.project_name)
            except ValueError:
                logger.warning(f"Entry {entry.id} of task log {task_log.id} has no project reference")
                continue

            resolution = resolver.resolve(ref, task_log.date)
            if not resolution.resolved:
                if isinstance(ref, ByName):
                    unmatched.add(ref.name)
                continue

            if (resolution.project_id, resolution.project_name) != (entry.project_id, entry.project_name):
                changes.append((entry, resolution.project_id, resolution.project_name))
        return changes

    async def propagate_rename(self, project_id: str) -> int:
        """Number of entries rewritten by propagate_project_name()."""
        _, updated = await self.propagate_project_name(project_id)
        return updated

    async def propagate_project_name(self, project_id: str) -> Tuple[str, int]:
        """
        Overwrite stale cached names of every entry pointing at project_id.

        Returns:
            (name written, number of entries rewritten)

        Raises:
            NotFoundError: project_id is not a live project
        """
        project = await self.directory.find_by_id(project_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        name = project.name

        stmt = (
            update(TaskLogEntry)
            .where(
                TaskLogEntry.project_id == project_id,
                or_(
                    TaskLogEntry.project_name.is_(None),
                    TaskLogEntry.project_name != name,
                ),
            )
            .values(project_name=name)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        updated = result.rowcount or 0
        if updated:
            logger.info(f"Propagated name '{name}' to {updated} entries of project {project_id}")
        return name, updated

    async def audit(self, rename_mapping: Optional[RenameMapping] = None) -> ConsistencyAudit:
        """Classify every stored entry without changing anything."""
        resolver = ReferenceResolver(
            await self.directory.snapshot(),
            rename_mapping=rename_mapping,
            fuzzy=True,
        )
        audit = ConsistencyAudit()

        for log_id in await self.store.all_ids():
            task_log = await self.store.find_by_id(log_id)
            if task_log is None:
                continue
            for entry in task_log.entries:
                try:
                    ref = ref_from_fields(entry.project_id, entry.project_name)
                except ValueError:
                    continue
                self._classify(ref, resolver, audit, task_log)
        return audit

    @staticmethod
    def _classify(ref, resolver: ReferenceResolver, audit: ConsistencyAudit, task_log: TaskLog) -> None:
        if isinstance(ref, ByName):
            audit.name_only += 1
            if resolver.match_name(ref.name, task_log.date) is None:
                audit.unmatched_names.add(ref.name)
            return

        project = resolver.directory.find_by_id(ref.project_id)
        if project is None:
            audit.orphaned += 1
        elif isinstance(ref, ByIdentifier):
            audit.missing_name += 1
        elif isinstance(ref, Resolved) and ref.name != project.name:
            audit.stale_name += 1
            audit.stale_names.add(ref.name)
        else:
            audit.resolved += 1
