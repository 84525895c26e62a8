"""embedpack_core.resources.context
===================================

CollectionContext: the per-resource packaging decision.

A context is produced by the deriver, optionally replaced by resource
callbacks, and consumed read-only by downstream collection.  It is never
patched in place once attached to a resource; a new value replaces it.
"""

from __future__ import annotations

from typing import FrozenSet, Optional

from pydantic import Field, field_validator

from embedpack_core.contracts import StrictBaseModel
from embedpack_core.resources.location import ResourceLocation

VALID_OPTIMIZE_LEVELS = frozenset({0, 1, 2})


class CollectionContext(StrictBaseModel):
    """Decision record for one resource.

    Attributes
    ----------
    include : bool
        Whether the resource is packaged at all.
    location : ResourceLocation
        Placement the resource is collected at.
    location_fallback : ResourceLocation, optional
        Alternate placement a collector may use if ``location`` turns out to
        be unusable.  ``None`` once the fallback has been consumed.
    optimize_levels : frozenset[int]
        Bytecode optimization levels to produce; any subset of {0, 1, 2}.
    include_source : bool
        Whether module source text is packaged.
    variant : str, optional
        Selected build variant for extension modules.
    """

    include: bool
    location: ResourceLocation
    location_fallback: Optional[ResourceLocation] = None
    optimize_levels: FrozenSet[int] = Field(default_factory=frozenset)
    include_source: bool = False
    variant: Optional[str] = None

    @field_validator("optimize_levels")
    @classmethod
    def _check_levels(cls, levels: FrozenSet[int]) -> FrozenSet[int]:
        unknown = set(levels) - VALID_OPTIMIZE_LEVELS
        if unknown:
            raise ValueError(f"unsupported bytecode optimization levels: {sorted(unknown)}")
        return levels

    def describe(self) -> dict:
        """Plain, JSON-friendly view used by the CLI and logs."""
        return {
            "include": self.include,
            "location": str(self.location),
            "location_fallback": (
                str(self.location_fallback) if self.location_fallback is not None else None
            ),
            "optimize_levels": sorted(self.optimize_levels),
            "include_source": self.include_source,
            "variant": self.variant,
        }
