"""
embedpack_core.contracts
========================

Shared pydantic v2 base model and closed vocabularies for the policy engine.

Design invariants
-----------------
* ``StrictBaseModel`` is the common ancestor -- no extra fields, assignments
  are re-validated before they are committed.
* Enums are ``str`` enums so they compare equal to, and serialise as, the
  strings the configuration language uses.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------


class StrictBaseModel(BaseModel):
    """Root model for all embedpack records.

    Guarantees:
    * ``extra="forbid"`` -- unexpected fields are rejected.
    * ``validate_assignment=True`` -- mutations are re-validated, and a
      rejected assignment leaves the previous value in place.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ResourceKind(str, Enum):
    """What a discovered resource is."""

    module_source = "module-source"
    module_bytecode = "module-bytecode"
    data_resource = "data-resource"
    extension_module = "extension-module"
    shared_library = "shared-library"
    file = "file"


# Kinds that are loaded through the platform's dynamic loader.
NATIVE_KINDS = frozenset({ResourceKind.extension_module, ResourceKind.shared_library})

# Kinds that compile to bytecode.
MODULE_KINDS = frozenset({ResourceKind.module_source, ResourceKind.module_bytecode})


class ProvenanceClass(str, Enum):
    """Origin of a resource relative to the runtime distribution."""

    distribution_source = "distribution-source"
    distribution_resource = "distribution-resource"
    non_distribution = "non-distribution"
    test = "test"


class ExtensionModuleFilter(str, Enum):
    """Which extension-module variants are eligible for packaging."""

    all = "all"
    minimal = "minimal"
    no_library = "no-library"
    no_copyleft = "no-copyleft"


class ResourceHandlingMode(str, Enum):
    """How discovered files are turned into resources."""

    classify = "classify"
    files = "files"
