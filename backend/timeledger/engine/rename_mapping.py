"""
Rename Mapping

Operator-maintained table of known project renames, kept outside the
code as a versioned JSON file:

    {
      "version": 2,
      "renames": [
        {"old_name": "Picklr", "new_name": "Picklr test"},
        {"old_name": "CopperField", "new_name": "CopperTestField",
         "effective_from": "2025-06-01"}
      ]
    }

A rule with effective_from only applies to logs dated before that day.
"""
import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..config import settings

logger = logging.getLogger(__name__)


class RenameRule(BaseModel):
    """A single old name -> new name rule."""
    old_name: str = Field(..., min_length=1, max_length=200)
    new_name: str = Field(..., min_length=1, max_length=200)
    effective_from: Optional[date] = None

    model_config = {"extra": "forbid"}

    @field_validator("old_name", "new_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Rename rule names cannot be blank")
        return v

    def applies_on(self, log_date: Optional[date]) -> bool:
        if self.effective_from is None or log_date is None:
            return True
        return log_date < self.effective_from


class RenameMapping(BaseModel):
    """Ordered list of rename rules. Earlier rules win."""
    version: int = Field(1, ge=1)
    renames: List[RenameRule] = []

    model_config = {"extra": "forbid"}

    @classmethod
    def from_pairs(cls, pairs: Dict[str, str], version: int = 1) -> "RenameMapping":
        """Build a mapping from a plain {old_name: new_name} dict."""
        return cls(
            version=version,
            renames=[RenameRule(old_name=old, new_name=new) for old, new in pairs.items()],
        )

    def candidates(self, name: str, log_date: Optional[date] = None) -> List[str]:
        """
        Names `name` may have been renamed to, nearest first.

        Direct targets come in rule order, followed by targets reached
        through chained renames (A -> B, B -> C). Cycles are cut.
        """
        seen = {name}
        found: List[str] = []
        frontier = [name]
        while frontier:
            current = frontier.pop(0)
            for rule in self.renames:
                if rule.old_name != current or not rule.applies_on(log_date):
                    continue
                if rule.new_name in seen:
                    continue
                seen.add(rule.new_name)
                found.append(rule.new_name)
                frontier.append(rule.new_name)
        return found

    def __len__(self) -> int:
        return len(self.renames)


def load_rename_mapping(path: Path) -> RenameMapping:
    """Read and validate a mapping file."""
    text = Path(path).read_text(encoding="utf-8")
    mapping = RenameMapping.model_validate_json(text)
    logger.info(f"Loaded rename mapping v{mapping.version} with {len(mapping)} rules from {path}")
    return mapping


def configured_rename_mapping() -> RenameMapping:
    """The mapping named by RENAME_MAPPING_PATH, or an empty one."""
    if settings.rename_mapping_path is None:
        return RenameMapping()
    return load_rename_mapping(settings.rename_mapping_path)
