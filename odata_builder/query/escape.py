"""
odata_builder.query.escape - Literal and identifier rendering
==============================================================

Converts Python values into their OData textual form and percent-encodes
text for inclusion in a URL.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any
from urllib.parse import quote

from odata_builder.core.errors import InvalidValueError

# Characters encodeURIComponent leaves untouched besides alphanumerics
URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class Identifier:
    """
    A field or property reference, rendered verbatim.

    Examples
    --------
    >>> escape(Identifier("Price"))
    'Price'
    """
    value: Any

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Literal:
    """
    A data value that is always escaped as a literal, even in positions
    where a bare string would be read as an identifier.

    Examples
    --------
    >>> escape(Literal("Name"), identifier=True)
    "'Name'"
    """
    value: Any


def identifier(value: Any) -> Identifier:
    return Identifier(value)


def literal(value: Any) -> Literal:
    return Literal(value)


def escape_odata_literal(value: str) -> str:
    """
    Escape a string value for use inside an OData string literal.

    Parameters
    ----------
    value : str
        The value to escape

    Returns
    -------
    str
        Value with single quotes doubled

    Examples
    --------
    >>> escape_odata_literal("O'Brien")
    "O''Brien"
    """
    return value.replace("'", "''")


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if value.utcoffset().total_seconds() == 0:
        text = text[: -len("+00:00")] + "Z"
    return text


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(value)


def _escape_literal(value: Any) -> str:
    if isinstance(value, (Identifier, Literal)):
        value = value.value
    if value is None:
        return "null"
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, str):
        return f"'{escape_odata_literal(value)}'"
    # datetime before date: datetime is a subclass of date
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    raise InvalidValueError(f"Cannot escape value of type {type(value).__name__}: {value!r}")


def escape(value: Any, identifier: bool = False) -> str:
    """
    Render a value in its OData textual form.

    Parameters
    ----------
    value : Any
        Scalar, ``Identifier`` or ``Literal``
    identifier : bool
        If True, plain values are treated as property references and
        emitted verbatim. ``Literal`` values are escaped regardless.

    Returns
    -------
    str
        Text ready for a $filter, $orderby or key clause. Percent-encoding
        happens later, when the URL is assembled.

    Raises
    ------
    InvalidValueError
        If the value has no scalar OData form

    Examples
    --------
    >>> escape("Bread")
    "'Bread'"
    >>> escape("Name", identifier=True)
    'Name'
    >>> escape(None)
    'null'
    """
    if isinstance(value, Identifier):
        return str(value.value)
    if isinstance(value, Literal):
        return _escape_literal(value.value)
    if identifier:
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
        raise InvalidValueError(f"Cannot use {type(value).__name__} as an identifier: {value!r}")
    return _escape_literal(value)


def encode_component(text: Any, safe: str = "") -> str:
    """Percent-encode text the way encodeURIComponent does (space is %20)."""
    return quote(str(text), safe=URI_COMPONENT_SAFE + safe)
