"""
odata_builder - Fluent OData query builder
==========================================

Builds canonical OData query strings from a fluent API and sends them
through a pluggable transport.

Usage
-----
>>> from odata_builder import odata, expression
>>>
>>> q = odata({"service": "https://services.odata.org/V4/OData/OData.svc"})
>>> q.resource("Products").filter("Price", "gt", 10).orderby("Name").query()
'https://services.odata.org/V4/OData/OData.svc/Products?$filter=Price%20gt%2010&$orderby=Name'

Subpackages
-----------
- odata_builder.core: Configuration, transport, batching, errors
- odata_builder.query: Escaping, expressions, lambdas, keys, the builder
- odata_builder.api: Optional FastAPI gateway

"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Union

__version__ = "0.1.0"

from odata_builder.core import (
    ODataBuilderError,
    InvalidValueError,
    InvalidExpressionError,
    InvalidKeyError,
    ODataUpstreamError,
    ODataConfig,
    ODataAuth,
    SessionConfig,
    TransportResponse,
    BaseTransport,
    ODataSession,
    ODataBatch,
    ConnectionContext,
)

from odata_builder.query import (
    Identifier,
    Literal,
    Lambda,
    Key,
    CompositeKey,
    ODataQuery,
    expression,
    identifier,
    literal,
    key,
    composite_key,
    escape,
)


def odata(
    config: Union[ODataConfig, Mapping, None] = None,
    transport: Optional[BaseTransport] = None,
    **overrides: Any,
) -> ODataQuery:
    """
    Start a new query.

    Parameters
    ----------
    config : ODataConfig or mapping, optional
        Query configuration; a mapping is passed to ``ODataConfig``
    transport : BaseTransport, optional
        Transport used by the verb methods
    **overrides
        ODataConfig fields, applied on top of ``config``

    Returns
    -------
    ODataQuery
        A fresh builder
    """
    if isinstance(config, ODataConfig):
        settings = {**vars(config), **overrides}
    else:
        settings = {**dict(config or {}), **overrides}
    return ODataQuery(ODataConfig(**settings), transport=transport)


__all__ = [
    "__version__",
    "odata",
    # Errors
    "ODataBuilderError",
    "InvalidValueError",
    "InvalidExpressionError",
    "InvalidKeyError",
    "ODataUpstreamError",
    # Core
    "ODataConfig",
    "ODataAuth",
    "SessionConfig",
    "TransportResponse",
    "BaseTransport",
    "ODataSession",
    "ODataBatch",
    "ConnectionContext",
    # Query
    "Identifier",
    "Literal",
    "Lambda",
    "Key",
    "CompositeKey",
    "ODataQuery",
    "expression",
    "identifier",
    "literal",
    "key",
    "composite_key",
    "escape",
]
