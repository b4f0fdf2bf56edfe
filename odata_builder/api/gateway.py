"""
odata_builder.api.gateway - FastAPI OData Gateway
=================================================

Optional REST gateway that builds OData URLs from JSON and, when
configured, executes them against the upstream service.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException

from odata_builder.core.config import ODataConfig
from odata_builder.core.errors import ODataBuilderError, ODataUpstreamError
from odata_builder.core.session import ODataAuth, ODataSession, SessionConfig
from odata_builder.query.builder import ODataQuery
from odata_builder.query.escape import Identifier
from odata_builder.api.models import (
    ExecuteResponse,
    QueryRequest,
    QueryUrlResponse,
)


class ODataGateway:
    """
    Configuration and transport factory for the API gateway.

    Reads configuration from environment variables by default.
    """

    def __init__(
        self,
        service: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        bearer_token: Optional[str] = None,
        verify_tls: Optional[bool] = None,
        api_key: Optional[str] = None,
        max_top: int = 500,
    ):
        self.service = (service or os.environ.get("ODATA_SERVICE", "")).rstrip("/")
        self.user = user or os.environ.get("ODATA_USER", "")
        self.password = password or os.environ.get("ODATA_PASS", "")
        self.bearer_token = bearer_token or os.environ.get("ODATA_BEARER_TOKEN", "")

        if verify_tls is not None:
            self.verify_tls = verify_tls
        else:
            self.verify_tls = os.environ.get("ODATA_VERIFY_TLS", "true").lower() != "false"

        self.api_key = api_key or os.environ.get("ODATA_API_KEY", "")
        self.max_top = max_top

    def build_session(self) -> ODataSession:
        """Create a new transport for upstream calls."""
        auth = None
        if self.bearer_token:
            auth = ODataAuth("bearer", self.bearer_token)
        elif self.user:
            auth = ODataAuth("basic", (self.user, self.password))

        cfg = SessionConfig(
            auth=auth,
            verify=self.verify_tls,
            timeout=float(os.environ.get("ODATA_TIMEOUT", "60")),
            raise_for_status=True,
        )
        return ODataSession(cfg)


def build_query(req: QueryRequest, default_service: str = "") -> ODataQuery:
    """
    Translate a QueryRequest into builder calls.

    Raises
    ------
    ODataBuilderError
        If any clause is malformed
    """
    cfg = ODataConfig(
        service=(req.service or default_service).rstrip("/"),
        version=req.version,
        max_version=req.max_version,
        format=req.format,
        custom=dict(req.custom),
    )
    q = ODataQuery(cfg)

    for segment in req.resources:
        q.resource(segment.name, segment.key)

    for clause in req.filters:
        value: Any = Identifier(clause.value) if clause.value_is_identifier else clause.value
        field: Any = clause.field
        if clause.quantifier:
            field = q.quantify(clause.quantifier, clause.field, clause.inner_property)
        if clause.combinator == "and":
            q.filter(field, clause.operator, value)
        elif clause.combinator == "or":
            q.or_(field, clause.operator, value)
        elif clause.combinator == "not":
            q.not_(field, clause.operator, value)
        else:
            raise ODataBuilderError(f"Unknown combinator: {clause.combinator}")

    if req.select:
        q.select(req.select)
    if req.expand:
        q.expand(req.expand)
    for order in req.orderby:
        if order.direction is None:
            q.orderby(order.field)
        else:
            q.orderby(order.field, order.direction)
    if req.top is not None:
        q.top(req.top)
    if req.skip is not None:
        q.skip(req.skip)
    if req.search:
        q.search(req.search)
    if req.count:
        q.count()
    return q


# Global gateway instance (lazy init)
_gateway: Optional[ODataGateway] = None


def get_gateway() -> ODataGateway:
    """Get or create the global gateway instance."""
    global _gateway
    if _gateway is None:
        _gateway = ODataGateway()
    return _gateway


def create_app(gateway: Optional[ODataGateway] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Parameters
    ----------
    gateway : ODataGateway, optional
        Custom gateway configuration. If None, reads from environment.

    Returns
    -------
    FastAPI
        Configured FastAPI application
    """
    global _gateway
    _gateway = gateway or ODataGateway()

    app = FastAPI(
        title="OData Query Builder Gateway",
        description="Build canonical OData query URLs from JSON and optionally execute them.",
        version="1.0.0",
    )

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def require_api_key(x_api_key: str = Header(default="")) -> None:
        gw = get_gateway()
        if not gw.api_key:
            raise HTTPException(status_code=403, detail="Execution disabled (ODATA_API_KEY is empty).")
        if x_api_key != gw.api_key:
            raise HTTPException(status_code=401, detail="Invalid API key")

    def _build(req: QueryRequest) -> ODataQuery:
        gw = get_gateway()
        try:
            q = build_query(req, default_service=gw.service)
            q.query()
        except ODataBuilderError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return q

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        """Health check endpoint."""
        return {"ok": True, "version": "1.0.0"}

    @app.post("/query/url", response_model=QueryUrlResponse)
    def query_url(req: QueryRequest) -> QueryUrlResponse:
        """Build the URL and headers for a query without sending it."""
        q = _build(req)
        return QueryUrlResponse(url=q.query(), headers=q.headers)

    @app.post("/query/execute", response_model=ExecuteResponse)
    def query_execute(req: QueryRequest, _: None = Depends(require_api_key)) -> ExecuteResponse:
        """Build the query and GET it from the upstream service."""
        gw = get_gateway()
        q = _build(req)
        if req.top is not None and req.top > gw.max_top:
            q.top(gw.max_top)
        try:
            with gw.build_session() as sess:
                q.transport = sess
                res = q.get()
        except ODataUpstreamError as e:
            raise HTTPException(
                status_code=502,
                detail={"upstream_status": e.status, "message": str(e), "url": e.url},
            )
        return ExecuteResponse(
            url=q.query(),
            status_code=res.status_code,
            headers=res.headers,
            body=res.body,
        )

    return app
