"""embedpack_core.policy.deriver
================================

CollectionContextDeriver: ``(PolicyConfiguration, Resource) -> CollectionContext``.

Derivation pipeline
-------------------
1. **Inclusion:**  resource-handling gate (raw file vs classified), then the
   provenance gate; test resources additionally need ``include_test``.
2. **Placement:**  ``resources_location``, or ``resources_location_fallback``
   when the resource kind cannot be loaded from the primary location.
3. **Representations:**  source text and bytecode optimization levels for
   module resources.  Levels are independent.
4. **Variants:**  ``extension_module_filter`` narrows eligible variants, then
   the preferred variant wins over the declared default.

The deriver reads its inputs and returns a new value.  It never touches the
policy or the resource's current context.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from embedpack_core.contracts import (
    MODULE_KINDS,
    NATIVE_KINDS,
    ExtensionModuleFilter,
    ProvenanceClass,
    ResourceKind,
)
from embedpack_core.errors import ConfigurationConflictError
from embedpack_core.policy.packaging_policy import PolicyConfiguration
from embedpack_core.resources.context import CollectionContext
from embedpack_core.resources.location import ResourceLocation
from embedpack_core.resources.resource import ExtensionModuleVariant, Resource

logger = logging.getLogger(__name__)

# Provenance class -> policy toggle gating it.
_PROVENANCE_TOGGLES = {
    ProvenanceClass.distribution_source: "include_distribution_sources",
    ProvenanceClass.distribution_resource: "include_distribution_resources",
    ProvenanceClass.non_distribution: "include_non_distribution_sources",
}


class CollectionContextDeriver:
    """Derive the default packaging decision for a resource.

    Usage
    -----
    >>> deriver = CollectionContextDeriver()
    >>> ctx = deriver.derive(policy, resource)
    >>> resource.replace_collection_context(ctx)
    """

    def derive(self, policy: PolicyConfiguration, resource: Resource) -> CollectionContext:
        """Compute a fresh CollectionContext.

        Parameters
        ----------
        policy : PolicyConfiguration
            Policy to apply.  Read only.
        resource : Resource
            Resource to decide on.  Read only.

        Returns
        -------
        CollectionContext
            New decision record; committing it is the caller's job.

        Raises
        ------
        ConfigurationConflictError
            If the resource is included but neither the primary nor the
            fallback location can hold it.
        """
        include = self.is_included(policy, resource)

        variant: Optional[str] = None
        if resource.kind == ResourceKind.extension_module:
            variant = self.select_variant(policy, resource)
            if variant is None:
                include = False

        location = policy.resources_location
        fallback = policy.resources_location_fallback
        if include:
            location, fallback = self.resolve_location(policy, resource)

        is_module = resource.kind in MODULE_KINDS
        context = CollectionContext(
            include=include,
            location=location,
            location_fallback=fallback,
            optimize_levels=self.optimize_levels(policy) if is_module else frozenset(),
            include_source=(resource.kind == ResourceKind.module_source and policy.allow_files),
            variant=variant,
        )
        logger.debug("derived context for %s: %s", resource.name, context.describe())
        return context

    # ------------------------------------------------------------------
    # Step 1: inclusion
    # ------------------------------------------------------------------

    @staticmethod
    def is_included(policy: PolicyConfiguration, resource: Resource) -> bool:
        if resource.kind == ResourceKind.file:
            if not (policy.include_file_resources and policy.allow_files):
                return False
        elif not policy.include_classified_resources:
            return False

        if resource.is_test and not policy.include_test:
            return False

        return bool(getattr(policy, _PROVENANCE_TOGGLES[resource.provenance]))

    # ------------------------------------------------------------------
    # Step 2: placement
    # ------------------------------------------------------------------

    @staticmethod
    def supports_location(
        policy: PolicyConfiguration, resource: Resource, location: ResourceLocation
    ) -> bool:
        """Whether ``resource`` can be loaded from ``location`` under ``policy``."""
        if not location.is_in_memory:
            return True
        if resource.kind not in NATIVE_KINDS:
            return True
        return policy.allow_in_memory_shared_library_loading and resource.supports_in_memory_loading

    def resolve_location(self, policy: PolicyConfiguration, resource: Resource):
        """Return ``(location, remaining_fallback)`` for an included resource."""
        primary = policy.resources_location
        fallback = policy.resources_location_fallback

        if self.supports_location(policy, resource, primary):
            return primary, fallback

        if fallback is None:
            raise ConfigurationConflictError(
                resource.name,
                str(primary),
                f"{resource.kind.value} cannot be loaded from {primary} and no "
                "resources_location_fallback is set",
            )
        if not self.supports_location(policy, resource, fallback):
            raise ConfigurationConflictError(
                resource.name,
                str(fallback),
                f"{resource.kind.value} cannot be loaded from {primary} or from "
                f"fallback {fallback}",
            )

        logger.debug("%s falls back from %s to %s", resource.name, primary, fallback)
        return fallback, None

    # ------------------------------------------------------------------
    # Step 3: representations
    # ------------------------------------------------------------------

    @staticmethod
    def optimize_levels(policy: PolicyConfiguration) -> frozenset:
        levels = set()
        if policy.bytecode_optimize_level_zero:
            levels.add(0)
        if policy.bytecode_optimize_level_one:
            levels.add(1)
        if policy.bytecode_optimize_level_two:
            levels.add(2)
        return frozenset(levels)

    # ------------------------------------------------------------------
    # Step 4: variants
    # ------------------------------------------------------------------

    @staticmethod
    def variant_is_eligible(
        module_filter: ExtensionModuleFilter, variant: ExtensionModuleVariant
    ) -> bool:
        if module_filter == ExtensionModuleFilter.all:
            return True
        if module_filter == ExtensionModuleFilter.minimal:
            return variant.required
        if module_filter == ExtensionModuleFilter.no_library:
            return not variant.link_libraries
        if module_filter == ExtensionModuleFilter.no_copyleft:
            return not variant.is_copyleft
        raise ValueError(f"Unknown extension module filter: {module_filter}")

    def eligible_variants(
        self, policy: PolicyConfiguration, resource: Resource
    ) -> List[ExtensionModuleVariant]:
        return [
            v
            for v in resource.available_variants
            if self.variant_is_eligible(policy.extension_module_filter, v)
        ]

    def select_variant(self, policy: PolicyConfiguration, resource: Resource) -> Optional[str]:
        """Pick the variant to package, or ``None`` if the filter leaves nothing."""
        eligible = [v.name for v in self.eligible_variants(policy, resource)]
        if not eligible:
            logger.debug(
                "%s has no variant passing extension_module_filter=%s",
                resource.name,
                policy.extension_module_filter.value,
            )
            return None

        preferred = policy.preferred_extension_module_variants.get(resource.name)
        if preferred is not None and preferred in eligible:
            return preferred

        default = resource.declared_default_variant
        if default in eligible:
            return default

        # Default filtered out; first eligible in declaration order.
        return eligible[0]


_DEFAULT_DERIVER = CollectionContextDeriver()


def derive_collection_context(policy: PolicyConfiguration, resource: Resource) -> CollectionContext:
    """Module-level shortcut for :meth:`CollectionContextDeriver.derive`."""
    return _DEFAULT_DERIVER.derive(policy, resource)
