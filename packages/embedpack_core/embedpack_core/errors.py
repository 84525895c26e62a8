"""
embedpack_core.errors

Typed exceptions for policy boundaries.
"""

from __future__ import annotations

from typing import Any, Optional


class PolicyError(Exception):
    """Base embedpack error."""


class ValidationError(PolicyError):
    """A value was rejected at a ``set`` boundary.

    The attribute keeps whatever value it held before the call.
    """

    def __init__(self, attribute: str, value: Any, message: Optional[str] = None):
        self.attribute = attribute
        self.value = value
        self.message = message or f"invalid value {value!r} for {attribute}"
        super().__init__(self.message)


class UnknownAttributeError(PolicyError, AttributeError):
    def __init__(self, name: str, owner: str = "PythonPackagingPolicy"):
        super().__init__(f"{owner} has no attribute '{name}'")
        self.name = name
        self.owner = owner


class CallbackError(PolicyError):
    """A registered resource callback failed during chain application."""

    def __init__(self, callback_name: str, index: int, resource_name: str, message: str):
        self.callback_name = callback_name
        self.index = index
        self.resource_name = resource_name
        super().__init__(
            f"resource callback #{index} ({callback_name}) failed for "
            f"{resource_name}: {message}"
        )


class ConfigurationConflictError(PolicyError):
    """A resource's placement requirements cannot be satisfied.

    Scoped to a single resource; other resources may still be processed.
    """

    def __init__(self, resource_name: str, location: str, reason: str):
        self.resource_name = resource_name
        self.location = location
        self.reason = reason
        super().__init__(
            f"cannot place {resource_name} at {location}: {reason}"
        )
