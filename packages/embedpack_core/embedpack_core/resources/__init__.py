"""embedpack_core.resources -- resource, placement and decision records.

Modules
-------
location   ResourceLocation (in-memory / filesystem-relative:<prefix>)
context    CollectionContext decision record
resource   Resource and ExtensionModuleVariant
"""

from embedpack_core.resources.location import LocationKind, ResourceLocation
from embedpack_core.resources.context import CollectionContext
from embedpack_core.resources.resource import (
    ExtensionModuleVariant,
    Resource,
    is_copyleft_license,
)

__all__ = [
    "LocationKind",
    "ResourceLocation",
    "CollectionContext",
    "ExtensionModuleVariant",
    "Resource",
    "is_copyleft_license",
]
