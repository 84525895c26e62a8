"""embedpack_core.policy.callbacks
==================================

CallbackChain: user hooks that may override the derived CollectionContext.

Commit contract
---------------
* Callbacks run strictly in registration order, one at a time.
* Each callback is called as ``callback(policy, resource)`` where ``policy``
  is a snapshot and ``resource`` is a working copy of the canonical resource
  carrying its current context.
* A callback returns a new :class:`CollectionContext`, or ``None`` to keep
  whatever context its working copy holds when it returns.
* Only that context is committed to the canonical resource.  Any other
  change made to the working copy is dropped.
* The first failure stops the chain.  Contexts committed by earlier
  callbacks stay in place.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Iterator, List

from embedpack_core.errors import CallbackError, ValidationError
from embedpack_core.policy.packaging_policy import PolicyConfiguration
from embedpack_core.resources.context import CollectionContext
from embedpack_core.resources.resource import Resource

logger = logging.getLogger(__name__)

ResourceCallback = Callable[[PolicyConfiguration, Resource], Any]


def callback_name(callback: Any) -> str:
    return getattr(callback, "__qualname__", None) or getattr(callback, "__name__", None) or repr(callback)


def _accepts_policy_and_resource(callback: Any) -> bool:
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures; trust callable().
        return True
    try:
        signature.bind(None, None)
    except TypeError:
        return False
    return True


class CallbackChain:
    """Ordered, append-only list of resource callbacks."""

    def __init__(self) -> None:
        self._callbacks: List[ResourceCallback] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def __iter__(self) -> Iterator[ResourceCallback]:
        return iter(list(self._callbacks))

    def register(self, callback: ResourceCallback) -> None:
        """Append ``callback``.  Duplicates are kept; nothing is executed.

        Raises
        ------
        ValidationError
            If ``callback`` is not callable or cannot take
            ``(policy, resource)`` positionally.
        """
        if not callable(callback):
            raise ValidationError(
                "register_resource_callback", callback, "resource callback must be callable"
            )
        if not _accepts_policy_and_resource(callback):
            raise ValidationError(
                "register_resource_callback",
                callback,
                f"resource callback {callback_name(callback)} must accept (policy, resource)",
            )
        self._callbacks.append(callback)
        logger.debug("registered resource callback #%d: %s", len(self._callbacks) - 1, callback_name(callback))

    def apply(self, policy: PolicyConfiguration, resource: Resource) -> None:
        """Run every callback against ``resource`` in registration order.

        ``resource`` must already carry a derived context.

        Raises
        ------
        CallbackError
            If a callback raises or returns something other than a
            CollectionContext or ``None``.
        """
        if resource.collection_context is None:
            raise ValueError(f"{resource.name} has no collection context to apply callbacks to")

        for index, callback in enumerate(self._callbacks):
            name = callback_name(callback)
            working = resource.model_copy(deep=True)
            try:
                result = callback(policy.snapshot(), working)
            except Exception as exc:
                raise CallbackError(name, index, resource.name, f"{type(exc).__name__}: {exc}") from exc

            if result is None:
                result = working.collection_context
            if not isinstance(result, CollectionContext):
                raise CallbackError(
                    name,
                    index,
                    resource.name,
                    f"expected CollectionContext or None, got {type(result).__name__}",
                )

            resource.replace_collection_context(result.model_copy(deep=True))
            logger.debug("callback %s committed context for %s", name, resource.name)
