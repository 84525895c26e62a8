"""embedpack_core.resources.resource
====================================

Resource: a discovered unit considered for inclusion in the bundle.

Resources come from the (external) discovery layer.  The policy engine only
reads their capability fields and replaces the single ``collection_context``
slot; nothing else on a resource is written here.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field, model_validator

from embedpack_core.contracts import (
    ProvenanceClass,
    ResourceKind,
    StrictBaseModel,
)
from embedpack_core.resources.context import CollectionContext

# SPDX identifier prefixes treated as copyleft by the ``no-copyleft`` filter.
COPYLEFT_LICENSE_PREFIXES = (
    "AGPL-",
    "CC-BY-SA-",
    "CDDL-",
    "EPL-",
    "EUPL-",
    "GPL-",
    "LGPL-",
    "MPL-",
    "OSL-",
    "Sleepycat",
)


def is_copyleft_license(spdx_id: str) -> bool:
    return spdx_id.startswith(COPYLEFT_LICENSE_PREFIXES)


class ExtensionModuleVariant(StrictBaseModel):
    """One build of a named extension module.

    Attributes
    ----------
    name : str
        Variant name (e.g. ``"default"``, ``"static"``).
    required : bool
        True if the interpreter cannot initialize without this module.
    link_libraries : list[str]
        External libraries this build links against.
    licenses : list[str]
        SPDX identifiers of the code compiled into this build.
    """

    name: str
    required: bool = False
    link_libraries: List[str] = Field(default_factory=list)
    licenses: List[str] = Field(default_factory=list)

    @property
    def is_copyleft(self) -> bool:
        return any(is_copyleft_license(lic) for lic in self.licenses)


class Resource(StrictBaseModel):
    """A discovered resource with one replaceable collection context.

    ``provenance`` names where the resource came from; ``is_test`` marks
    test code on top of that origin.  ``provenance_class`` folds the two
    together the way inclusion rules see them.
    """

    name: str
    kind: ResourceKind
    provenance: ProvenanceClass = ProvenanceClass.non_distribution
    is_test: bool = False
    supports_in_memory_loading: bool = True
    available_variants: List[ExtensionModuleVariant] = Field(default_factory=list)
    default_variant: Optional[str] = None
    collection_context: Optional[CollectionContext] = None

    @model_validator(mode="after")
    def _check_variants(self) -> "Resource":
        if self.provenance == ProvenanceClass.test:
            raise ValueError(
                "test resources declare their origin in 'provenance' and set 'is_test'"
            )
        if self.kind != ResourceKind.extension_module:
            if self.available_variants:
                raise ValueError(f"only extension modules carry variants (got {self.kind.value})")
            return self
        if not self.available_variants:
            raise ValueError(f"extension module {self.name} declares no variants")
        names = [v.name for v in self.available_variants]
        if len(set(names)) != len(names):
            raise ValueError(f"extension module {self.name} has duplicate variant names")
        if self.default_variant is not None and self.default_variant not in names:
            raise ValueError(
                f"default variant '{self.default_variant}' of {self.name} "
                f"is not one of {names}"
            )
        return self

    @property
    def provenance_class(self) -> ProvenanceClass:
        if self.is_test:
            return ProvenanceClass.test
        return self.provenance

    @property
    def declared_default_variant(self) -> Optional[str]:
        """``default_variant``, or the first declared variant when unset."""
        if self.default_variant is not None:
            return self.default_variant
        if self.available_variants:
            return self.available_variants[0].name
        return None

    @property
    def variant_names(self) -> List[str]:
        return [v.name for v in self.available_variants]

    def get_variant(self, name: str) -> Optional[ExtensionModuleVariant]:
        for variant in self.available_variants:
            if variant.name == name:
                return variant
        return None

    def replace_collection_context(self, context: CollectionContext) -> None:
        """Attach ``context``, discarding whatever was there before."""
        self.collection_context = context
