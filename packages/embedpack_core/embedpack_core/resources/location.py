"""embedpack_core.resources.location
====================================

Concrete placement targets for packaged resources.

String forms
------------
in-memory                    embedded in the executable's memory image
filesystem-relative:<prefix> written under ``<prefix>`` next to the executable
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, model_validator

from embedpack_core.contracts import StrictBaseModel

_RELATIVE_PREFIX = "filesystem-relative:"


class LocationKind(str, Enum):
    in_memory = "in-memory"
    filesystem_relative = "filesystem-relative"


class ResourceLocation(StrictBaseModel):
    """Resolved target for a resource.

    Accepts its string form wherever a model is expected, so policy fields
    typed ``ResourceLocation`` can be assigned ``"filesystem-relative:lib"``
    directly.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: LocationKind
    prefix: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return cls._parse_fields(data)
        return data

    @model_validator(mode="after")
    def _check_prefix(self) -> "ResourceLocation":
        if self.kind == LocationKind.in_memory and self.prefix is not None:
            raise ValueError("in-memory locations do not take a prefix")
        if self.kind == LocationKind.filesystem_relative and not self.prefix:
            raise ValueError("filesystem-relative locations require a non-empty prefix")
        return self

    @staticmethod
    def _parse_fields(value: str) -> dict:
        if value == LocationKind.in_memory.value:
            return {"kind": LocationKind.in_memory}
        if value.startswith(_RELATIVE_PREFIX):
            return {
                "kind": LocationKind.filesystem_relative,
                "prefix": value[len(_RELATIVE_PREFIX):],
            }
        raise ValueError(f"{value} is not a valid resource location")

    @classmethod
    def parse(cls, value: str) -> "ResourceLocation":
        return cls.model_validate(value)

    @classmethod
    def in_memory(cls) -> "ResourceLocation":
        return cls(kind=LocationKind.in_memory)

    @classmethod
    def relative(cls, prefix: str) -> "ResourceLocation":
        return cls(kind=LocationKind.filesystem_relative, prefix=prefix)

    @property
    def is_in_memory(self) -> bool:
        return self.kind == LocationKind.in_memory

    def __str__(self) -> str:
        if self.is_in_memory:
            return LocationKind.in_memory.value
        return f"{_RELATIVE_PREFIX}{self.prefix}"
