"""
Reference Resolver

Normalises a task entry's project reference against the directory.

Resolution only ever enriches a reference. It never rejects an entry
and never writes to the directory; a miss degrades to the entry's
original shape and is reported as a ResolutionWarning in the log.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ResolutionWarning
from ..models.task_log import TaskLogEntry
from ..schemas.task_log import TaskEntryResponse
from ..store.directory import DirectorySnapshot, ProjectDirectory, ProjectRecord
from .refs import ByIdentifier, ByName, ProjectRef, Resolved, ref_from_fields, ref_label, ref_to_fields
from .rename_mapping import RenameMapping, configured_rename_mapping

logger = logging.getLogger(__name__)


class ResolutionMethod(str, Enum):
    """Which step produced the resolution."""
    ID = "id"
    EXACT = "exact"
    MAPPING = "mapping"
    FUZZY = "fuzzy"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one reference."""
    original: ProjectRef
    ref: ProjectRef
    method: ResolutionMethod
    warning: Optional[ResolutionWarning] = None

    @property
    def resolved(self) -> bool:
        return self.method != ResolutionMethod.UNRESOLVED

    @property
    def changed(self) -> bool:
        return self.ref != self.original

    @property
    def project_id(self) -> Optional[str]:
        return ref_to_fields(self.ref)[0]

    @property
    def project_name(self) -> Optional[str]:
        return ref_to_fields(self.ref)[1]


class ReferenceResolver:
    """
    Resolves project references against a directory snapshot.

    Order, first success wins:
    - ByIdentifier: id lookup fills in the name.
    - ByName: exact name lookup, then the rename mapping (if given),
      then fuzzy containment (if enabled).
    - Resolved: the id is authoritative and the cached name is refreshed.
      An unknown id keeps the cached name (orphaned entry).

    The write path uses a strict resolver (no mapping, no fuzzy). Read,
    report and migration paths enable both.
    """

    def __init__(
        self,
        directory: DirectorySnapshot,
        rename_mapping: Optional[RenameMapping] = None,
        fuzzy: bool = False,
    ):
        self.directory = directory
        self.rename_mapping = rename_mapping or RenameMapping()
        self.fuzzy = fuzzy

    def resolve(self, ref: ProjectRef, log_date: Optional[date] = None) -> Resolution:
        if isinstance(ref, Resolved):
            project = self.directory.find_by_id(ref.project_id)
            if project is None:
                return self._miss(ref, "project id not in directory, keeping cached name")
            return Resolution(ref, Resolved(project.id, project.name), ResolutionMethod.ID)

        if isinstance(ref, ByIdentifier):
            project = self.directory.find_by_id(ref.project_id)
            if project is None:
                return self._miss(ref, "project id not in directory")
            return Resolution(ref, Resolved(project.id, project.name), ResolutionMethod.ID)

        if isinstance(ref, ByName):
            match = self.match_name(ref.name, log_date)
            if match is None:
                return self._miss(ref, "no project with this name")
            project, method = match
            return Resolution(ref, Resolved(project.id, project.name), method)

        raise TypeError(f"Unknown project reference: {ref!r}")

    def resolve_fields(
        self,
        project_id: Optional[str],
        project_name: Optional[str],
        log_date: Optional[date] = None,
    ) -> Resolution:
        """Resolve straight from the two storage columns."""
        return self.resolve(ref_from_fields(project_id, project_name), log_date)

    def match_name(
        self,
        name: str,
        log_date: Optional[date] = None,
    ) -> Optional[Tuple[ProjectRecord, ResolutionMethod]]:
        """Find the project a free-text name refers to."""
        project = self.directory.find_by_name(name)
        if project is not None:
            return project, ResolutionMethod.EXACT

        for candidate in self.rename_mapping.candidates(name, log_date):
            project = self.directory.find_by_name(candidate)
            if project is not None:
                logger.info(f"Mapped '{name}' to '{project.name}'")
                return project, ResolutionMethod.MAPPING

        if self.fuzzy:
            project = self.fuzzy_match(name)
            if project is not None:
                logger.info(f"Fuzzy matched '{name}' to '{project.name}'")
                return project, ResolutionMethod.FUZZY

        return None

    def fuzzy_match(self, name: str) -> Optional[ProjectRecord]:
        """
        First directory project whose name contains `name` or is
        contained in it, case-insensitively.

        This is a heuristic. When several projects match, the first in
        (name, id) order wins, which is stable but not necessarily right.
        """
        needle = name.lower()
        if not needle:
            return None
        for project in self.directory.list_all():
            candidate = project.name.lower()
            if needle in candidate or candidate in needle:
                return project
        return None

    def _miss(self, ref: ProjectRef, reason: str) -> Resolution:
        warning = ResolutionWarning(ref_label(ref), reason)
        logger.warning(str(warning))
        return Resolution(ref, ref, ResolutionMethod.UNRESOLVED, warning)


async def load_resolver(
    db: AsyncSession,
    strict: bool = False,
    rename_mapping: Optional[RenameMapping] = None,
) -> ReferenceResolver:
    """
    Build a resolver over a fresh directory snapshot.

    strict=True gives the write-path resolver (id and exact name only).
    Otherwise the configured rename mapping and fuzzy matching are enabled.
    """
    snapshot = await ProjectDirectory(db).snapshot()
    if strict:
        return ReferenceResolver(snapshot)
    if rename_mapping is None:
        rename_mapping = configured_rename_mapping()
    return ReferenceResolver(snapshot, rename_mapping=rename_mapping, fuzzy=True)


def repair_entries(
    entries: Iterable[TaskLogEntry],
    resolver: ReferenceResolver,
    log_date: Optional[date] = None,
) -> List[TaskEntryResponse]:
    """
    Read-repair stored entries for output.

    The stored rows are left untouched; the returned entries carry the
    directory's current view of each reference.
    """
    repaired = []
    for entry in entries:
        try:
            resolution = resolver.resolve_fields(entry.project_id, entry.project_name, log_date)
        except ValueError:
            repaired.append(TaskEntryResponse(
                description=entry.description,
                hours=entry.hours,
                resolved=False,
            ))
            continue
        repaired.append(TaskEntryResponse(
            project_id=resolution.project_id,
            project_name=resolution.project_name,
            description=entry.description,
            hours=entry.hours,
            resolved=resolution.resolved,
        ))
    return repaired
