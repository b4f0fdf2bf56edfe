"""
odata_builder.core.errors - Exception hierarchy
================================================

Builder errors are raised synchronously while a query is being assembled or
serialized. Transport errors are raised by the transport only.
"""

from __future__ import annotations

from typing import Dict, Optional


class ODataBuilderError(ValueError):
    """Base class for errors raised while building a query."""


class InvalidValueError(ODataBuilderError):
    """A value has no OData literal or identifier form."""


class InvalidExpressionError(ODataBuilderError):
    """A filter expression is missing its field, operator or operand."""


class InvalidKeyError(ODataBuilderError):
    """A resource key is neither a scalar nor a plain mapping."""


class ODataUpstreamError(RuntimeError):
    """
    Exception raised by a transport when the OData service returns an error.

    Attributes
    ----------
    status : int
        HTTP status code from the service
    body : str
        Response body (truncated for display)
    url : str
        The URL that was called
    headers : dict
        Response headers
    """

    def __init__(
        self,
        status: int,
        body: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ):
        snippet = (body or "")[:1200]
        super().__init__(f"OData upstream error {status} for {url}: {snippet}")
        self.status = status
        self.body = body or ""
        self.url = url
        self.headers = headers or {}
