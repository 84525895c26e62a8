"""embedpack_core.policy.applicator
===================================

PolicyApplicator: owns one policy and one callback chain and applies them to
resources.

``apply_to_resource`` replaces the resource's context with a freshly derived
one, then runs the callback chain.  ``apply_to_resources`` is the batch layer
above it: a ConfigurationConflictError is scoped to one resource, so with
``keep_going=True`` the batch records it and moves on.  Callback failures
always propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from embedpack_core.errors import ConfigurationConflictError
from embedpack_core.policy.callbacks import CallbackChain
from embedpack_core.policy.deriver import CollectionContextDeriver
from embedpack_core.policy.packaging_policy import PolicyConfiguration
from embedpack_core.resources.resource import Resource

logger = logging.getLogger(__name__)


@dataclass
class ApplicationReport:
    """Outcome of applying a policy to a batch of resources."""

    applied: List[Resource] = field(default_factory=list)
    conflicts: List[ConfigurationConflictError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts

    @property
    def included(self) -> List[Resource]:
        return [
            r for r in self.applied
            if r.collection_context is not None and r.collection_context.include
        ]


class PolicyApplicator:
    """Apply a policy and its resource callbacks to resources.

    Parameters
    ----------
    policy : PolicyConfiguration, optional
        Policy to apply.  A bare default policy when omitted.
    callbacks : CallbackChain, optional
        Resource callbacks.  An empty chain when omitted.
    deriver : CollectionContextDeriver, optional
        Default-decision function.
    """

    def __init__(
        self,
        policy: Optional[PolicyConfiguration] = None,
        callbacks: Optional[CallbackChain] = None,
        deriver: Optional[CollectionContextDeriver] = None,
    ) -> None:
        self.policy = policy if policy is not None else PolicyConfiguration()
        self.callbacks = callbacks if callbacks is not None else CallbackChain()
        self.deriver = deriver or CollectionContextDeriver()

    def apply_to_resource(self, resource: Resource) -> Resource:
        """Derive, commit, then run callbacks.  Returns ``resource``.

        Raises
        ------
        ConfigurationConflictError
            From derivation; the resource's previous context is untouched.
        CallbackError
            From the chain; the last committed context stays on the resource.
        """
        context = self.deriver.derive(self.policy, resource)
        resource.replace_collection_context(context)
        if len(self.callbacks):
            self.callbacks.apply(self.policy, resource)
        return resource

    def apply_to_resources(
        self, resources: Iterable[Resource], keep_going: bool = False
    ) -> ApplicationReport:
        report = ApplicationReport()
        for resource in resources:
            try:
                self.apply_to_resource(resource)
            except ConfigurationConflictError as exc:
                if not keep_going:
                    raise
                logger.warning("skipping %s: %s", resource.name, exc)
                report.conflicts.append(exc)
                continue
            report.applied.append(resource)

        logger.info(
            "applied policy to %d resources (%d included, %d conflicts)",
            len(report.applied),
            len(report.included),
            len(report.conflicts),
        )
        return report
