"""
odata_builder.query.resource - Resource segments and entity keys
=================================================================
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from odata_builder.core.errors import InvalidKeyError, InvalidValueError
from odata_builder.query.escape import encode_component, escape


@dataclass(frozen=True)
class Key:
    """A single-value entity key, rendered ``(value)``."""
    value: Any

    def render(self) -> str:
        try:
            text = escape(self.value)
        except InvalidValueError as e:
            raise InvalidKeyError(f"Unsupported key value: {self.value!r}") from e
        return f"({encode_component(text)})"


@dataclass(frozen=True)
class CompositeKey:
    """
    A multi-part entity key, rendered ``(k1=v1,k2=v2)`` in input order.

    Examples
    --------
    >>> CompositeKey({"Id": 5, "Cat": "A"}).render()
    "(Id=5,Cat='A')"
    """
    parts: Dict[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.parts, Mapping) or not self.parts:
            raise InvalidKeyError("composite key requires a non-empty mapping")
        object.__setattr__(self, "parts", dict(self.parts))

    def render(self) -> str:
        clauses = []
        for name, value in self.parts.items():
            try:
                clauses.append(
                    f"{encode_component(escape(name, identifier=True))}={encode_component(escape(value))}"
                )
            except InvalidValueError as e:
                raise InvalidKeyError(f"Unsupported key part {name!r}: {value!r}") from e
        return f"({','.join(clauses)})"


KeyLike = Union[Key, CompositeKey]


def to_key(value: Any) -> Optional[KeyLike]:
    """
    Classify a resource key once, at the call site.

    Mappings become composite keys, scalars become single keys; None means
    no key. Sequences, sets and other containers are rejected.
    """
    if value is None:
        return None
    if isinstance(value, (Key, CompositeKey)):
        return value
    if isinstance(value, Mapping):
        return CompositeKey(value)
    if isinstance(value, (list, tuple, set, frozenset, bytes, bytearray)):
        raise InvalidKeyError(f"Resource key must be a scalar or a mapping, got {type(value).__name__}")
    return Key(value)


def key(value: Any) -> Key:
    return Key(value)


def composite_key(parts: Mapping) -> CompositeKey:
    return CompositeKey(parts)


@dataclass(frozen=True)
class Segment:
    """One path component of a resource path, optionally keyed."""
    name: str
    key: Optional[KeyLike] = None

    def render(self) -> str:
        if self.key is None:
            return self.name
        return f"{self.name}{self.key.render()}"
