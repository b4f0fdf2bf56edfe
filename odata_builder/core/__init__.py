"""
odata_builder.core - Configuration, transport and batching
===========================================================

Collaborators around the query builder:

- ODataConfig: service root, initial path, headers, version and format
- ODataAuth / SessionConfig / ODataSession: requests-backed transport
- ODataBatch: $batch collaborator for several requests in one call
- ConnectionContext: environment-driven connection manager
- Error hierarchy shared by the whole package

"""

from odata_builder.core.errors import (
    ODataBuilderError,
    InvalidValueError,
    InvalidExpressionError,
    InvalidKeyError,
    ODataUpstreamError,
)

from odata_builder.core.config import ODataConfig

from odata_builder.core.session import (
    ODataAuth,
    SessionConfig,
    TransportResponse,
    BaseTransport,
    ODataSession,
)

from odata_builder.core.batch import ODataBatch, BatchPart

from odata_builder.core.connection import ConnectionContext

__all__ = [
    "ODataBuilderError",
    "InvalidValueError",
    "InvalidExpressionError",
    "InvalidKeyError",
    "ODataUpstreamError",
    "ODataConfig",
    "ODataAuth",
    "SessionConfig",
    "TransportResponse",
    "BaseTransport",
    "ODataSession",
    "ODataBatch",
    "BatchPart",
    "ConnectionContext",
]
