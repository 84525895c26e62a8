"""embedpack_core.bridge -- configuration-language surface for policies."""

from embedpack_core.bridge.config_bridge import (
    ATTRIBUTE_TABLE,
    METHOD_NAMES,
    ConfigBridge,
    ConfigLanguageError,
    ErrorCode,
    PolicyValue,
    UnknownConfigAttributeError,
)

__all__ = [
    "ATTRIBUTE_TABLE",
    "METHOD_NAMES",
    "ConfigBridge",
    "ConfigLanguageError",
    "ErrorCode",
    "PolicyValue",
    "UnknownConfigAttributeError",
]
