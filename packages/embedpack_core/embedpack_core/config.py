"""embedpack_core.config

Load packaging configuration from YAML:

- policy files: an optional ``distribution`` / ``target_triple`` to start
  from, plus a ``policy`` mapping of option overrides
- resource manifests: the discovered resources to decide on

Policy overrides are applied through a ConfigBridge so a file is validated
exactly like a configuration script.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field

from embedpack_core.bridge.config_bridge import ConfigBridge
from embedpack_core.contracts import StrictBaseModel
from embedpack_core.distribution import DistributionRegistry
from embedpack_core.policy.packaging_policy import PolicyConfiguration
from embedpack_core.resources.resource import Resource

logger = logging.getLogger(__name__)


class PolicyFileYaml(StrictBaseModel):
    distribution: Optional[str] = None
    target_triple: Optional[str] = None
    policy: Dict[str, Any] = Field(default_factory=dict)


class ResourceManifestYaml(StrictBaseModel):
    resources: List[Resource] = Field(default_factory=list)


def read_yaml(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return {} if data is None else data


def build_bridge(
    policy_file: Optional[Path] = None,
    distribution_id: Optional[str] = None,
    target_triple: Optional[str] = None,
    registry: Optional[DistributionRegistry] = None,
) -> ConfigBridge:
    """Create a ConfigBridge over a starting policy with file overrides applied.

    The starting policy comes from, in order: the explicit
    ``distribution_id`` / ``target_triple`` arguments, the policy file's
    ``distribution`` / ``target_triple`` keys, or a bare default policy.
    """
    policy_doc = PolicyFileYaml()
    if policy_file is not None:
        policy_doc = PolicyFileYaml.model_validate(read_yaml(Path(policy_file)))

    dist_id = distribution_id or policy_doc.distribution
    triple = target_triple or policy_doc.target_triple
    if dist_id or triple:
        registry = registry or DistributionRegistry()
        dist = registry.resolve(dist_id, triple)
        logger.info("starting from distribution %s", dist.distribution_id)
        policy = dist.make_packaging_policy()
    else:
        policy = PolicyConfiguration()

    bridge = ConfigBridge(policy)
    bridge.apply_settings(policy_doc.policy)
    return bridge


def load_resource_manifest(path: Path) -> List[Resource]:
    manifest = ResourceManifestYaml.model_validate(read_yaml(Path(path)))
    logger.info("loaded %d resources from %s", len(manifest.resources), path)
    return manifest.resources
