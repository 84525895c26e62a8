"""embedpack_core.policy.packaging_policy
=========================================

PolicyConfiguration: every toggle that parameterizes packaging decisions.

The option surface is a fixed, closed set of names (``POLICY_OPTIONS``).
Generic access goes through :meth:`PolicyConfiguration.get` and
:meth:`PolicyConfiguration.set`; the preferred-variant mapping and the
resource handling mode change only through their dedicated methods.

Phases
------
configure   arbitrary get/set while the configuration script runs
derive      read-only use by the deriver and resource callbacks

Nothing locks the policy between phases.  Callers crossing into the derive
phase should hand out :meth:`PolicyConfiguration.snapshot` copies, which is
what :class:`~embedpack_core.policy.applicator.PolicyApplicator` does for
callbacks.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import Field, StrictBool, ValidationError as PydanticValidationError, field_validator

from embedpack_core.contracts import (
    ExtensionModuleFilter,
    ResourceHandlingMode,
    StrictBaseModel,
)
from embedpack_core.errors import UnknownAttributeError, ValidationError
from embedpack_core.resources.location import ResourceLocation

logger = logging.getLogger(__name__)

POLICY_TYPE_NAME = "PythonPackagingPolicy"

POLICY_OPTIONS: Tuple[str, ...] = (
    "allow_files",
    "allow_in_memory_shared_library_loading",
    "bytecode_optimize_level_zero",
    "bytecode_optimize_level_one",
    "bytecode_optimize_level_two",
    "extension_module_filter",
    "file_scanner_classify_files",
    "file_scanner_emit_files",
    "include_classified_resources",
    "include_distribution_sources",
    "include_distribution_resources",
    "include_file_resources",
    "include_non_distribution_sources",
    "include_test",
    "preferred_extension_module_variants",
    "resources_location",
    "resources_location_fallback",
)

# Options that generic ``set`` refuses, with the method that owns them.
DEDICATED_SETTERS: Dict[str, str] = {
    "preferred_extension_module_variants": "set_preferred_extension_module_variant",
}

# Toggle values applied by each resource handling mode.
_HANDLING_MODE_TOGGLES: Dict[ResourceHandlingMode, Dict[str, bool]] = {
    ResourceHandlingMode.classify: {
        "file_scanner_classify_files": True,
        "file_scanner_emit_files": False,
        "include_classified_resources": True,
        "include_file_resources": False,
        "allow_files": False,
    },
    ResourceHandlingMode.files: {
        "file_scanner_classify_files": False,
        "file_scanner_emit_files": True,
        "include_classified_resources": False,
        "include_file_resources": True,
        "allow_files": True,
    },
}


def _plain(value: Any) -> Any:
    """Convert an option value to the form the configuration language sees."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, ResourceLocation):
        return str(value)
    if isinstance(value, dict):
        return dict(value)
    return value


def _describe_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return errors[0].get("msg", str(exc))


class PolicyConfiguration(StrictBaseModel):
    """Packaging policy for one build configuration.

    Defaults describe a bare policy; runtime distributions supply their own
    starting point through
    :meth:`~embedpack_core.distribution.RuntimeDistribution.make_packaging_policy`.
    """

    allow_files: StrictBool = False
    allow_in_memory_shared_library_loading: StrictBool = False
    bytecode_optimize_level_zero: StrictBool = True
    bytecode_optimize_level_one: StrictBool = False
    bytecode_optimize_level_two: StrictBool = False
    extension_module_filter: ExtensionModuleFilter = ExtensionModuleFilter.all
    file_scanner_classify_files: StrictBool = True
    file_scanner_emit_files: StrictBool = False
    include_classified_resources: StrictBool = True
    include_distribution_sources: StrictBool = True
    include_distribution_resources: StrictBool = False
    include_file_resources: StrictBool = False
    include_non_distribution_sources: StrictBool = True
    include_test: StrictBool = False
    preferred_extension_module_variants: Dict[str, str] = Field(default_factory=dict)
    resources_location: ResourceLocation = Field(default_factory=ResourceLocation.in_memory)
    resources_location_fallback: Optional[ResourceLocation] = None

    @field_validator("extension_module_filter", mode="before")
    @classmethod
    def _check_filter_type(cls, value: Any) -> Any:
        if not isinstance(value, (str, ExtensionModuleFilter)):
            raise ValueError(
                f"extension_module_filter must be a string, got {type(value).__name__}"
            )
        return value

    # ------------------------------------------------------------------
    # Generic option access
    # ------------------------------------------------------------------

    @staticmethod
    def _require_option(name: str) -> None:
        if name not in POLICY_OPTIONS:
            raise UnknownAttributeError(name, POLICY_TYPE_NAME)

    def get(self, name: str) -> Any:
        """Return the current value of option ``name`` in plain form.

        Enumerations come back as their strings, locations as their string
        form (or ``None``), and the variant mapping as a copy.

        Raises
        ------
        UnknownAttributeError
            If ``name`` is not one of ``POLICY_OPTIONS``.
        """
        self._require_option(name)
        return _plain(getattr(self, name))

    def set(self, name: str, value: Any) -> None:
        """Validate ``value`` and assign it to option ``name``.

        The assignment is all-or-nothing: a rejected value leaves the option
        as it was.

        Raises
        ------
        UnknownAttributeError
            If ``name`` is not one of ``POLICY_OPTIONS``.
        ValidationError
            If the value has the wrong type, is outside the option's
            vocabulary, or the option has a dedicated setter.
        """
        self._require_option(name)
        if name in DEDICATED_SETTERS:
            raise ValidationError(
                name, value, f"{name} can only be changed with {DEDICATED_SETTERS[name]}()"
            )
        try:
            setattr(self, name, value)
        except PydanticValidationError as exc:
            raise ValidationError(name, value, _describe_error(exc)) from exc

    def options(self) -> Dict[str, Any]:
        """All options, in ``POLICY_OPTIONS`` order, in plain form."""
        return {name: self.get(name) for name in POLICY_OPTIONS}

    # ------------------------------------------------------------------
    # Dedicated setters
    # ------------------------------------------------------------------

    def set_preferred_extension_module_variant(self, module_name: str, variant_name: str) -> None:
        """Prefer ``variant_name`` whenever extension module ``module_name`` offers it."""
        for label, value in (("module name", module_name), ("variant name", variant_name)):
            if not isinstance(value, str) or not value:
                raise ValidationError(
                    "preferred_extension_module_variants",
                    value,
                    f"{label} must be a non-empty string",
                )
        updated = dict(self.preferred_extension_module_variants)
        updated[module_name] = variant_name
        self.preferred_extension_module_variants = updated

    def set_resource_handling_mode(self, mode: Any) -> None:
        """Switch between classifying files into typed resources and emitting raw files.

        Raises
        ------
        ValidationError
            If ``mode`` is not ``"classify"`` or ``"files"``.
        """
        try:
            handling_mode = ResourceHandlingMode(mode)
        except ValueError as exc:
            raise ValidationError(
                "resource_handling_mode",
                mode,
                f"{mode!r} is not a valid resource handling mode; expected one of "
                f"{[m.value for m in ResourceHandlingMode]}",
            ) from exc

        for name, value in _HANDLING_MODE_TOGGLES[handling_mode].items():
            setattr(self, name, value)
        logger.debug("resource handling mode set to %s", handling_mode.value)

    # ------------------------------------------------------------------
    # Phase boundary
    # ------------------------------------------------------------------

    def snapshot(self) -> "PolicyConfiguration":
        """Independent deep copy for read-only use during derivation."""
        return self.model_copy(deep=True)


_missing = set(POLICY_OPTIONS) ^ set(PolicyConfiguration.model_fields)
if _missing:
    raise RuntimeError(f"PolicyConfiguration fields out of sync with POLICY_OPTIONS: {sorted(_missing)}")
del _missing
