"""embedpack_core.bridge.config_bridge
======================================

ConfigBridge: the attribute and method surface a configuration script sees
for a packaging policy.

Every option is reachable through an explicit dispatch table
(``ATTRIBUTE_TABLE``: name -> getter/setter pair) and every method name through
``METHOD_NAMES``.  Both tables are checked against ``POLICY_OPTIONS`` when
this module is imported, so a missing or stray entry fails at startup rather
than on first use.

Failures from the policy are re-raised as :class:`ConfigLanguageError`
carrying a stable ``code``, a label naming the attribute path, and the
rejected value.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from embedpack_core.errors import PolicyError, UnknownAttributeError, ValidationError
from embedpack_core.policy.applicator import PolicyApplicator
from embedpack_core.policy.callbacks import CallbackChain
from embedpack_core.policy.packaging_policy import (
    POLICY_OPTIONS,
    POLICY_TYPE_NAME,
    PolicyConfiguration,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorCode(str, Enum):
    invalid_value = "EMBEDPACK_INVALID_VALUE"
    unknown_attribute = "EMBEDPACK_UNKNOWN_ATTRIBUTE"
    read_only = "EMBEDPACK_READ_ONLY"


class ConfigLanguageError(PolicyError):
    """Failure surfaced to the configuration language.

    Attributes
    ----------
    code : ErrorCode
        Stable machine-readable code.
    label : str
        Attribute path or call that failed, e.g.
        ``PythonPackagingPolicy.resources_location = bogus``.
    attribute : str
        Option or method name.
    value : Any
        The rejected value, if any.
    """

    def __init__(self, code: ErrorCode, label: str, attribute: str, value: Any, message: str):
        self.code = code
        self.label = label
        self.attribute = attribute
        self.value = value
        self.message = message
        super().__init__(f"[{code.value}] {label}: {message}")


class UnknownConfigAttributeError(ConfigLanguageError, AttributeError):
    """Unknown attribute or method name; also an ``AttributeError``."""

    def __init__(self, label: str, attribute: str, value: Any, message: str):
        super().__init__(ErrorCode.unknown_attribute, label, attribute, value, message)


# ---------------------------------------------------------------------------
# Dispatch tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeBinding:
    getter: Callable[[PolicyConfiguration], Any]
    setter: Optional[Callable[[PolicyConfiguration, Any], None]] = None


def _option(name: str) -> AttributeBinding:
    return AttributeBinding(
        getter=lambda policy: policy.get(name),
        setter=lambda policy, value: policy.set(name, value),
    )


def _read_only(name: str) -> AttributeBinding:
    return AttributeBinding(getter=lambda policy: policy.get(name))


ATTRIBUTE_TABLE: Dict[str, AttributeBinding] = {
    "allow_files": _option("allow_files"),
    "allow_in_memory_shared_library_loading": _option("allow_in_memory_shared_library_loading"),
    "bytecode_optimize_level_zero": _option("bytecode_optimize_level_zero"),
    "bytecode_optimize_level_one": _option("bytecode_optimize_level_one"),
    "bytecode_optimize_level_two": _option("bytecode_optimize_level_two"),
    "extension_module_filter": _option("extension_module_filter"),
    "file_scanner_classify_files": _option("file_scanner_classify_files"),
    "file_scanner_emit_files": _option("file_scanner_emit_files"),
    "include_classified_resources": _option("include_classified_resources"),
    "include_distribution_sources": _option("include_distribution_sources"),
    "include_distribution_resources": _option("include_distribution_resources"),
    "include_file_resources": _option("include_file_resources"),
    "include_non_distribution_sources": _option("include_non_distribution_sources"),
    "include_test": _option("include_test"),
    "preferred_extension_module_variants": _read_only("preferred_extension_module_variants"),
    "resources_location": _option("resources_location"),
    "resources_location_fallback": _option("resources_location_fallback"),
}

METHOD_NAMES = (
    "register_resource_callback",
    "set_preferred_extension_module_variant",
    "set_resource_handling_mode",
)


def verify_dispatch_tables() -> None:
    """Fail loudly if the dispatch tables drift from the option set."""
    missing = [name for name in POLICY_OPTIONS if name not in ATTRIBUTE_TABLE]
    extra = [name for name in ATTRIBUTE_TABLE if name not in POLICY_OPTIONS]
    if missing or extra:
        raise RuntimeError(
            f"ConfigBridge attribute table out of sync: missing={missing}, extra={extra}"
        )
    clashes = sorted(set(METHOD_NAMES) & set(ATTRIBUTE_TABLE))
    if clashes:
        raise RuntimeError(f"ConfigBridge methods shadow attributes: {clashes}")
    for name in METHOD_NAMES:
        if not callable(getattr(ConfigBridge, name, None)):
            raise RuntimeError(f"ConfigBridge is missing method {name}")


# ---------------------------------------------------------------------------
# ConfigBridge
# ---------------------------------------------------------------------------


class ConfigBridge:
    """Script-facing view of a policy and its resource callbacks.

    Parameters
    ----------
    policy : PolicyConfiguration, optional
        Policy the script mutates.  Shared by reference, not copied.
    callbacks : CallbackChain, optional
        Chain that ``register_resource_callback`` appends to.
    """

    def __init__(
        self,
        policy: Optional[PolicyConfiguration] = None,
        callbacks: Optional[CallbackChain] = None,
    ) -> None:
        self.policy = policy if policy is not None else PolicyConfiguration()
        self.callbacks = callbacks if callbacks is not None else CallbackChain()

    # ----- attributes --------------------------------------------------------

    def has_attr(self, name: str) -> bool:
        return name in ATTRIBUTE_TABLE

    def dir_attrs(self) -> List[str]:
        return sorted(list(ATTRIBUTE_TABLE) + list(METHOD_NAMES))

    def get_attr(self, name: str) -> Any:
        binding = ATTRIBUTE_TABLE.get(name)
        if binding is None:
            raise UnknownConfigAttributeError(
                f"{POLICY_TYPE_NAME}.{name}",
                name,
                None,
                str(UnknownAttributeError(name, POLICY_TYPE_NAME)),
            )
        return binding.getter(self.policy)

    def set_attr(self, name: str, value: Any) -> None:
        label = f"{POLICY_TYPE_NAME}.{name} = {value!r}"
        binding = ATTRIBUTE_TABLE.get(name)
        if binding is None:
            raise UnknownConfigAttributeError(
                label,
                name,
                value,
                str(UnknownAttributeError(name, POLICY_TYPE_NAME)),
            )
        if binding.setter is None:
            raise ConfigLanguageError(
                ErrorCode.read_only,
                label,
                name,
                value,
                f"{name} is read-only; use the dedicated setter method",
            )
        try:
            binding.setter(self.policy, value)
        except ValidationError as exc:
            raise ConfigLanguageError(
                ErrorCode.invalid_value, label, name, value, exc.message
            ) from exc
        logger.debug("%s", label)

    # ----- methods -----------------------------------------------------------

    def call_method(self, name: str, *args: Any, **kwargs: Any) -> None:
        if name not in METHOD_NAMES:
            raise UnknownConfigAttributeError(
                f"{POLICY_TYPE_NAME}.{name}()",
                name,
                None,
                f"{POLICY_TYPE_NAME} has no method '{name}'",
            )
        return getattr(self, name)(*args, **kwargs)

    def register_resource_callback(self, func: Any) -> None:
        try:
            self.callbacks.register(func)
        except ValidationError as exc:
            raise ConfigLanguageError(
                ErrorCode.invalid_value,
                "register_resource_callback()",
                "func",
                func,
                exc.message,
            ) from exc

    def set_preferred_extension_module_variant(self, name: str, value: str) -> None:
        try:
            self.policy.set_preferred_extension_module_variant(name, value)
        except ValidationError as exc:
            raise ConfigLanguageError(
                ErrorCode.invalid_value,
                "set_preferred_extension_module_variant()",
                "preferred_extension_module_variants",
                exc.value,
                exc.message,
            ) from exc

    def set_resource_handling_mode(self, mode: str) -> None:
        try:
            self.policy.set_resource_handling_mode(mode)
        except ValidationError as exc:
            raise ConfigLanguageError(
                ErrorCode.invalid_value,
                "set_resource_handling_mode()",
                "resource_handling_mode",
                mode,
                exc.message,
            ) from exc

    # ----- host-side bulk configuration --------------------------------------

    def apply_settings(self, settings: Mapping[str, Any]) -> None:
        """Apply a mapping of option names to values, as read from YAML.

        ``resource_handling_mode`` is applied first so explicit toggles in the
        same mapping win over the mode's presets.
        ``preferred_extension_module_variants`` must be a mapping and goes
        through the dedicated setter entry by entry.
        """
        if "resource_handling_mode" in settings:
            self.set_resource_handling_mode(settings["resource_handling_mode"])

        for name, value in settings.items():
            if name == "resource_handling_mode":
                continue
            if name == "preferred_extension_module_variants":
                if not isinstance(value, Mapping):
                    raise ConfigLanguageError(
                        ErrorCode.invalid_value,
                        f"{POLICY_TYPE_NAME}.{name} = {value!r}",
                        name,
                        value,
                        "expected a mapping of module name to variant name",
                    )
                for module_name, variant_name in value.items():
                    self.set_preferred_extension_module_variant(module_name, variant_name)
                continue
            self.set_attr(name, value)

    # ----- handoff to the derive phase ---------------------------------------

    def applicator(self) -> PolicyApplicator:
        """PolicyApplicator sharing this bridge's policy and callbacks."""
        return PolicyApplicator(policy=self.policy, callbacks=self.callbacks)

    def value(self) -> "PolicyValue":
        return PolicyValue(self)


class PolicyValue:
    """Attribute-style proxy over a ConfigBridge.

    ``value.include_test = True`` and ``value.set_resource_handling_mode("files")``
    route through the bridge's dispatch tables.
    """

    __slots__ = ("_bridge",)

    def __init__(self, bridge: ConfigBridge) -> None:
        object.__setattr__(self, "_bridge", bridge)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        bridge = object.__getattribute__(self, "_bridge")
        if name in METHOD_NAMES:
            return functools.partial(bridge.call_method, name)
        return bridge.get_attr(name)

    def __setattr__(self, name: str, value: Any) -> None:
        object.__getattribute__(self, "_bridge").set_attr(name, value)

    def __dir__(self) -> List[str]:
        return object.__getattribute__(self, "_bridge").dir_attrs()

    def __repr__(self) -> str:
        return f"<{POLICY_TYPE_NAME}>"


verify_dispatch_tables()
