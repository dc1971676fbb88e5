"""
Project References

A task entry points at a project by id, by name, or by both.
The three shapes are modelled as distinct types so every consumer
has to say what it does with each one.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class ByIdentifier:
    """Entry knows the project id but carries no cached name."""
    project_id: str


@dataclass(frozen=True)
class ByName:
    """Legacy entry captured before project ids existed."""
    name: str


@dataclass(frozen=True)
class Resolved:
    """Entry carrying both an id and a (possibly stale) cached name."""
    project_id: str
    name: str


ProjectRef = Union[ByIdentifier, ByName, Resolved]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def ref_from_fields(project_id: Optional[str], project_name: Optional[str]) -> ProjectRef:
    """
    Build a reference from the two optional storage fields.

    Raises:
        ValueError: if neither field carries a value
    """
    project_id = _clean(project_id)
    project_name = _clean(project_name)

    if project_id and project_name:
        return Resolved(project_id=project_id, name=project_name)
    if project_id:
        return ByIdentifier(project_id=project_id)
    if project_name:
        return ByName(name=project_name)
    raise ValueError("A project reference needs a project_id or a project_name")


def ref_to_fields(ref: ProjectRef) -> Tuple[Optional[str], Optional[str]]:
    """Split a reference back into (project_id, project_name)."""
    if isinstance(ref, Resolved):
        return ref.project_id, ref.name
    if isinstance(ref, ByIdentifier):
        return ref.project_id, None
    if isinstance(ref, ByName):
        return None, ref.name
    raise TypeError(f"Unknown project reference: {ref!r}")


def ref_label(ref: ProjectRef) -> str:
    """Human-readable label for logs and warnings."""
    if isinstance(ref, Resolved):
        return f"{ref.name} ({ref.project_id})"
    if isinstance(ref, ByIdentifier):
        return f"id:{ref.project_id}"
    if isinstance(ref, ByName):
        return ref.name
    raise TypeError(f"Unknown project reference: {ref!r}")
