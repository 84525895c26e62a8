"""
embedpack_core.distribution
~~~~~~~~~~~~~~~~~~~~~~~~~~~

DistributionRegistry: loads ``contrib/distributions.yaml``, validates it
through its Pydantic schema, and hands out the default packaging policy of
each runtime distribution.

Usage::

    from embedpack_core.distribution import DistributionRegistry

    registry = DistributionRegistry()
    dist = registry.default_for_target("x86_64-pc-windows-msvc")
    policy = dist.make_packaging_policy()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field

from embedpack_core.bridge.config_bridge import ConfigBridge
from embedpack_core.contracts import StrictBaseModel
from embedpack_core.policy.packaging_policy import PolicyConfiguration

logger = logging.getLogger(__name__)

_DEFAULT_CONTRIB_DIR = str(Path(__file__).resolve().parent / "contrib")

# Placement used for native code that cannot be loaded from memory.
DEFAULT_LIBRARY_PREFIX = "filesystem-relative:lib"


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class DistributionFlavor(str, Enum):
    standalone_static = "standalone-static"
    standalone_dynamic = "standalone-dynamic"


class DistributionEntryYaml(StrictBaseModel):
    """One runtime distribution in ``distributions.yaml``.

    Parameters
    ----------
    python_version : str
        ``major.minor`` of the embedded interpreter.
    target_triple : str
        Platform the distribution runs on.
    flavor : DistributionFlavor
        Whether extension modules are linked statically or loaded dynamically.
    supports_in_memory_shared_library_loading : bool
        Whether the platform can load shared libraries from memory.
    policy : dict[str, Any]
        Option overrides applied on top of the flavor defaults.
    """

    python_version: str
    target_triple: str
    flavor: DistributionFlavor
    supports_in_memory_shared_library_loading: bool = False
    policy: Dict[str, Any] = Field(default_factory=dict)


class DistributionsFileYaml(StrictBaseModel):
    version: str
    distributions: Dict[str, DistributionEntryYaml]
    default_distributions: Dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# RuntimeDistribution
# ---------------------------------------------------------------------------


class DistributionKeyError(KeyError):
    """Raised when a requested distribution or target is not registered."""


@dataclass
class RuntimeDistribution:
    distribution_id: str
    python_version: str
    target_triple: str
    flavor: DistributionFlavor
    supports_in_memory_shared_library_loading: bool = False
    policy_overrides: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_entry(cls, distribution_id: str, entry: DistributionEntryYaml) -> "RuntimeDistribution":
        return cls(
            distribution_id=distribution_id,
            python_version=entry.python_version,
            target_triple=entry.target_triple,
            flavor=entry.flavor,
            supports_in_memory_shared_library_loading=entry.supports_in_memory_shared_library_loading,
            policy_overrides=dict(entry.policy),
        )

    def make_packaging_policy(self) -> PolicyConfiguration:
        """Build a fresh default policy for applications using this distribution.

        Dynamic distributions on platforms that can load shared libraries
        from memory allow it, with ``lib/`` as the fallback placement.  The
        entry's overrides are applied afterwards through a ConfigBridge, so
        they are validated exactly like configuration-script assignments.
        """
        policy = PolicyConfiguration()
        if (
            self.flavor == DistributionFlavor.standalone_dynamic
            and self.supports_in_memory_shared_library_loading
        ):
            policy.set("allow_in_memory_shared_library_loading", True)
            policy.set("resources_location_fallback", DEFAULT_LIBRARY_PREFIX)

        ConfigBridge(policy).apply_settings(self.policy_overrides)
        return policy


# ---------------------------------------------------------------------------
# DistributionRegistry
# ---------------------------------------------------------------------------


class DistributionRegistry:
    """Load, validate, and query ``distributions.yaml``.

    Parameters
    ----------
    contrib_dir : str, optional
        Directory holding ``distributions.yaml``.  Defaults to the copy
        shipped inside the package.
    """

    _DISTRIBUTIONS_FILE = "distributions.yaml"

    def __init__(self, contrib_dir: str = _DEFAULT_CONTRIB_DIR) -> None:
        self._contrib_dir = contrib_dir
        logger.info("DistributionRegistry loading from %s", contrib_dir)

        raw = self._load_raw(self._DISTRIBUTIONS_FILE)
        try:
            data = DistributionsFileYaml.model_validate(raw)
        except Exception:
            logger.error(
                "Validation failed for %s against %s",
                self._DISTRIBUTIONS_FILE,
                DistributionsFileYaml.__name__,
                exc_info=True,
            )
            raise

        self._distributions: Dict[str, RuntimeDistribution] = {
            dist_id: RuntimeDistribution.from_entry(dist_id, entry)
            for dist_id, entry in data.distributions.items()
        }
        self._defaults: Dict[str, str] = dict(data.default_distributions)
        self._validate_cross_references()

    def _load_raw(self, filename: str) -> dict:
        filepath = Path(self._contrib_dir) / filename
        with open(filepath, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if data is None:
            return {}
        return data

    def _validate_cross_references(self) -> None:
        """Every default must name a registered distribution for its own
        target, and every entry's overrides must produce a valid policy."""
        for triple, dist_id in self._defaults.items():
            dist = self._distributions.get(dist_id)
            if dist is None:
                raise DistributionKeyError(
                    f"default_distributions['{triple}'] references unknown distribution '{dist_id}'"
                )
            if dist.target_triple != triple:
                logger.warning(
                    "default distribution for %s is %s, which targets %s",
                    triple,
                    dist_id,
                    dist.target_triple,
                )

        for dist in self._distributions.values():
            dist.make_packaging_policy()

    # ===================================================================
    # Queries
    # ===================================================================

    def list_ids(self) -> List[str]:
        return sorted(self._distributions)

    def get(self, distribution_id: str) -> RuntimeDistribution:
        dist = self._distributions.get(distribution_id)
        if dist is None:
            raise DistributionKeyError(
                f"Unknown distribution '{distribution_id}'. Available: {self.list_ids()}"
            )
        return dist

    def default_for_target(self, target_triple: str) -> RuntimeDistribution:
        dist_id = self._defaults.get(target_triple)
        if dist_id is None:
            raise DistributionKeyError(
                f"No default distribution for target '{target_triple}'. "
                f"Known targets: {sorted(self._defaults)}"
            )
        return self._distributions[dist_id]

    def resolve(self, distribution_id: Optional[str] = None, target_triple: Optional[str] = None) -> RuntimeDistribution:
        """Look up by id when given, else by target triple."""
        if distribution_id:
            return self.get(distribution_id)
        if target_triple:
            return self.default_for_target(target_triple)
        raise DistributionKeyError("either a distribution id or a target triple is required")
