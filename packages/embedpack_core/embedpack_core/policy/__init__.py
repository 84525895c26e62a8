"""embedpack_core.policy -- packaging policy and decision engine.

Modules
-------
packaging_policy  PolicyConfiguration: closed option set with validated get/set
deriver           CollectionContextDeriver: pure default decision per resource
callbacks         CallbackChain: ordered user overrides with commit contract
applicator        PolicyApplicator: derive + commit + callbacks, batch mode
"""

from embedpack_core.policy.packaging_policy import (
    POLICY_OPTIONS,
    PolicyConfiguration,
)
from embedpack_core.policy.deriver import (
    CollectionContextDeriver,
    derive_collection_context,
)
from embedpack_core.policy.callbacks import CallbackChain
from embedpack_core.policy.applicator import ApplicationReport, PolicyApplicator

__all__ = [
    "POLICY_OPTIONS",
    "PolicyConfiguration",
    "CollectionContextDeriver",
    "derive_collection_context",
    "CallbackChain",
    "ApplicationReport",
    "PolicyApplicator",
]
