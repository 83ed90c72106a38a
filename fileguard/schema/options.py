"""
Per-run check options.
"""

from pydantic import BaseModel, Field

from fileguard.core.config import settings
from fileguard.core.exclusions import ExclusionSet


class CheckOptions(BaseModel):
    check_core: bool = True
    check_unknown: bool = True
    restore_modified: bool = True
    exclusions: list[str] = Field(default_factory=list)
    excluded_subtrees: list[str] = Field(default_factory=list)

    @classmethod
    def from_settings(cls, **overrides) -> "CheckOptions":
        values = {
            "check_core": settings.CHECK_CORE,
            "check_unknown": settings.CHECK_UNKNOWN,
            "restore_modified": settings.RESTORE_MODIFIED,
            "exclusions": list(settings.EXCLUSIONS),
            "excluded_subtrees": list(settings.EXCLUDED_SUBTREES),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def exclusion_set(self) -> ExclusionSet:
        return ExclusionSet.build(self.exclusions, self.excluded_subtrees)
