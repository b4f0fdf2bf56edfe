"""
odata_builder.api.models - Pydantic models for API requests/responses
=====================================================================
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


EXAMPLE_SERVICE = "https://services.odata.org/V4/OData/OData.svc"


class ResourceSegment(BaseModel):
    """One resource path segment."""

    name: str = Field(..., description="Entity set or navigation property")
    key: Optional[Any] = Field(
        default=None,
        description="Single key value, or an object for a composite key",
        json_schema_extra={"example": 1},
    )


class FilterClause(BaseModel):
    """
    One filter comparison, combined with the clauses before it.

    With ``quantifier`` set, ``field`` is the collection navigation property
    and ``inner_property`` is compared on each element.
    """

    field: str = Field(..., json_schema_extra={"example": "Price"})
    operator: str = Field(..., json_schema_extra={"example": "gt"})
    value: Any = Field(default=None, json_schema_extra={"example": 10})
    combinator: str = Field(
        default="and",
        description="How the clause joins the filter: and, or, not",
    )
    quantifier: Optional[str] = Field(default=None, description="any or all")
    inner_property: Optional[str] = Field(default=None, description="Property of the lambda variable")
    value_is_identifier: bool = Field(
        default=False,
        description="Treat value as a property reference instead of a literal",
    )


class OrderClause(BaseModel):
    field: str
    direction: Optional[str] = Field(default=None, description="asc or desc")


class QueryRequest(BaseModel):
    """Request model for building an OData query."""

    service: Optional[str] = Field(
        default=None,
        description="Service root URL; defaults to the gateway's ODATA_SERVICE",
        json_schema_extra={"example": EXAMPLE_SERVICE},
    )
    resources: List[ResourceSegment] = Field(
        default_factory=list,
        json_schema_extra={"example": [{"name": "Products"}]},
    )
    filters: List[FilterClause] = Field(default_factory=list)
    select: List[str] = Field(default_factory=list, description="Fields for $select")
    expand: List[str] = Field(default_factory=list, description="Paths for $expand")
    orderby: List[OrderClause] = Field(default_factory=list)
    top: Optional[int] = Field(default=None, ge=0, description="$top")
    skip: Optional[int] = Field(default=None, ge=0, description="$skip")
    search: Optional[str] = Field(default=None, description="$search")
    count: bool = Field(default=False, description="Append /$count")
    format: Optional[str] = Field(default=None, description="$format override")
    version: Optional[str] = Field(default=None, description="OData-Version header")
    max_version: Optional[str] = Field(default=None, description="OData-MaxVersion header")
    custom: Dict[str, Optional[str]] = Field(default_factory=dict, description="Custom query parameters")


class QueryUrlResponse(BaseModel):
    url: str
    headers: Dict[str, str]


class ExecuteResponse(BaseModel):
    url: str
    status_code: int
    headers: Dict[str, str]
    body: str
