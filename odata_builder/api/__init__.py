"""
odata_builder.api - Optional REST API Gateway
=============================================

FastAPI gateway that builds OData URLs from JSON requests and, with an
API key configured, executes them upstream.

Usage
-----
>>> from odata_builder.api import create_app
>>> app = create_app()
>>> # Run with: uvicorn odata_builder.api:create_app --factory

Or run directly:
>>> python -m odata_builder.api

"""

from odata_builder.api.gateway import create_app, build_query, ODataGateway

__all__ = [
    "create_app",
    "build_query",
    "ODataGateway",
]
