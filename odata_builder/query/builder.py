"""
odata_builder.query.builder - Fluent OData query builder
=========================================================

Accumulates resource path, filter tree and clause state, and serializes it
into one URL in a fixed clause order:

``$format, $top, $skip, $filter, $select, $expand, $search, $orderby``,
then custom parameters in insertion order.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from odata_builder.core.config import ODataConfig
from odata_builder.core.errors import InvalidValueError, ODataBuilderError
from odata_builder.query.escape import encode_component, escape
from odata_builder.query.expression import _MISSING, Comparison, Expression, Negation
from odata_builder.query.lambdas import Lambda
from odata_builder.query.resource import Segment, to_key

if TYPE_CHECKING:
    from odata_builder.core.batch import ODataBatch

logger = logging.getLogger("odata_builder.query")

# Query option names keep their leading "$" unencoded
_NAME_SAFE = "$"


def _as_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _param_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _flatten(items: Sequence[Any]) -> List[Any]:
    flat: List[Any] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


class ODataQuery:
    """
    Fluent builder for one OData request.

    Every clause method mutates this instance and returns it. ``query()``
    is read-only and can be called any number of times.

    Parameters
    ----------
    config : ODataConfig, optional
        Service root, initial resource path, headers and format
    transport : BaseTransport, optional
        Collaborator used by the verb methods (get, post, ...)

    Examples
    --------
    >>> q = ODataQuery(ODataConfig(service="https://host/odata"))
    >>> q.resource("Products").filter("Name", "eq", "Bread").top(5).query()
    "https://host/odata/Products?$top=5&$filter=Name%20eq%20'Bread'"
    """

    def __init__(self, config: Optional[ODataConfig] = None, transport: Any = None) -> None:
        self.config = config or ODataConfig()
        self.transport = transport
        self.service = self.config.service or ""
        self._segments: List[str] = [self.config.resources] if self.config.resources else []
        self._custom: Dict[str, Any] = dict(self.config.custom)
        self._headers: Dict[str, str] = self.config.protocol_headers()
        # Never reset: bound variables stay unique for this instance
        self._next_lambda = 0

        self._top: Optional[int] = None
        self._skip: Optional[int] = None
        self._filter: Optional[Expression] = None
        self._select: List[Any] = []
        self._expand: List[Any] = []
        self._order: List[Tuple[Any, Optional[str]]] = []
        self._search: Optional[str] = None
        self._count = False

    # ---------------- paging ----------------

    def top(self, top: int) -> "ODataQuery":
        self._top = _as_count("top", top)
        return self

    def skip(self, skip: int) -> "ODataQuery":
        self._skip = _as_count("skip", skip)
        return self

    # ---------------- filter ----------------

    def _node(self, field: Any, operator: Any, value: Any) -> Expression:
        if isinstance(field, Expression) and operator is None and value is _MISSING:
            return field
        return Comparison(field, operator, value)

    def filter(self, field: Any, operator: Any = None, value: Any = _MISSING) -> "ODataQuery":
        """
        Add a comparison, ANDed with any existing filter.

        Parameters
        ----------
        field : str, Identifier, Literal, Lambda or Expression
            Field to compare, or a prebuilt expression (then operator and
            value are omitted)
        operator : str, optional
            OData operator, e.g. "eq", "gt", "startswith"
        value : Any
            Value to compare against; escaped as a literal unless wrapped
            in ``Identifier``
        """
        node = self._node(field, operator, value)
        self._filter = node if self._filter is None else self._filter.and_(node)
        return self

    def and_(self, field: Any, operator: Any = None, value: Any = _MISSING) -> "ODataQuery":
        return self.filter(field, operator, value)

    def or_(self, field: Any, operator: Any = None, value: Any = _MISSING) -> "ODataQuery":
        node = self._node(field, operator, value)
        self._filter = node if self._filter is None else self._filter.or_(node)
        return self

    def not_(self, field: Any, operator: Any = None, value: Any = _MISSING) -> "ODataQuery":
        return self.filter(Negation(self._node(field, operator, value)))

    # ---------------- lambdas ----------------

    def _allocate_variable(self) -> str:
        name = f"p{self._next_lambda}"
        self._next_lambda += 1
        return name

    def quantify(self, quantifier: str, navigation: str, inner_property: Any = None) -> Lambda:
        """
        Allocate a Lambda with a fresh bound variable.

        Useful for nesting: pass the result as the property of ``any`` or
        ``all``.

        Examples
        --------
        >>> q.any("Orders", q.quantify("all", "Items", "Price"), "gt", 10)
        """
        return Lambda(quantifier, navigation, self._allocate_variable(), inner_property)

    def all(self, field: str, inner_property: Any, operator: Any, value: Any) -> "ODataQuery":
        return self.filter(self.quantify("all", field, inner_property), operator, value)

    def any(self, field: str, inner_property: Any, operator: Any, value: Any) -> "ODataQuery":
        return self.filter(self.quantify("any", field, inner_property), operator, value)

    # ---------------- resource path ----------------

    def resource(self, resource: str, key: Any = None) -> "ODataQuery":
        """
        Append a resource segment, optionally keyed.

        Parameters
        ----------
        resource : str
            Entity set or navigation property name
        key : scalar, mapping, Key or CompositeKey, optional
            ``5`` renders ``(5)``; ``{"Id": 5, "Cat": "A"}`` renders
            ``(Id=5,Cat='A')``
        """
        self._segments.append(Segment(resource, to_key(key)).render())
        return self

    @property
    def path(self) -> str:
        return "/".join(self._segments)

    # ---------------- projection ----------------

    def select(self, *items: Any) -> "ODataQuery":
        self._select.extend(_flatten(items))
        return self

    def expand(self, *items: Any) -> "ODataQuery":
        self._expand.extend(_flatten(items))
        return self

    def orderby(self, item: Any, *more: Any) -> "ODataQuery":
        """
        Add sort keys.

        Call as ``orderby("Name")``, ``orderby("Name", "desc")`` or with
        several ``[field, direction]`` pairs:
        ``orderby(["Name", "desc"], ["Price"], "Id")``.

        A direction of ``"desc"`` (any case) or a falsy value sorts
        descending; any other given direction sorts ascending.
        """
        if isinstance(item, (list, tuple)):
            for arg in (item,) + more:
                if isinstance(arg, (list, tuple)):
                    # Empty pairs add nothing
                    if arg:
                        self._add_order(*arg[:2])
                else:
                    self._add_order(arg)
        else:
            self._add_order(item, *more[:1])
        return self

    def _add_order(self, item: Any, direction: Any = _MISSING) -> None:
        if direction is _MISSING or direction is None:
            self._order.append((item, None))
            return
        if not direction or str(direction).lower() == "desc":
            self._order.append((item, "desc"))
        else:
            self._order.append((item, "asc"))

    def search(self, search: str) -> "ODataQuery":
        self._search = search
        return self

    def count(self) -> "ODataQuery":
        self._count = True
        return self

    def custom(self, name: Any, value: Any = None) -> "ODataQuery":
        """
        Add custom query parameters.

        ``custom("sap-client", "100")`` adds one; ``custom({"a": 1})`` adds
        several. A value of None emits the bare name.
        """
        if isinstance(name, Mapping):
            self._custom.update(name)
        else:
            self._custom[name] = value
        return self

    # ---------------- serialization ----------------

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def _render_order(self) -> str:
        parts = []
        for item, direction in self._order:
            text = escape(item, identifier=True)
            parts.append(f"{text} {direction}" if direction else text)
        return ",".join(parts)

    def query(self) -> str:
        """
        Serialize the accumulated state into a URL.

        Returns
        -------
        str
            ``<service>/<path>[/$count][?clauses]``

        Raises
        ------
        InvalidValueError
            If a select, expand or orderby item has no identifier form
        """
        url = f"{self.service}/{self.path}"
        params: List[str] = []

        def add_part(name: str, value: Any = None) -> None:
            if value is None:
                params.append(encode_component(name, _NAME_SAFE))
            else:
                params.append(f"{encode_component(name, _NAME_SAFE)}={encode_component(_param_text(value))}")

        if self._count:
            url += "/$count"
        elif self.config.format is not None:
            add_part("$format", self.config.format)
        if self._top is not None:
            add_part("$top", self._top)
        if self._skip is not None:
            add_part("$skip", self._skip)
        if self._filter is not None:
            add_part("$filter", self._filter.render())
        if self._select:
            add_part("$select", ",".join(escape(item, identifier=True) for item in self._select))
        if self._expand:
            add_part("$expand", ",".join(escape(item, identifier=True) for item in self._expand))
        if self._search:
            add_part("$search", self._search)
        if self._order:
            add_part("$orderby", self._render_order())
        for name, value in self._custom.items():
            add_part(name, value)

        if params:
            url += "?" + "&".join(params)
        return url

    def __str__(self) -> str:
        return self.query()

    # ---------------- transport verbs ----------------

    def _send(self, method: str, headers: Optional[Dict[str, str]], options: Dict[str, Any]) -> Any:
        if self.transport is None:
            raise ODataBuilderError(f"No transport configured for {method.upper()}")
        merged = dict(self._headers)
        if headers:
            merged.update(headers)
        url = self.query()
        logger.debug(f"{method.upper()} {url}")
        return self.transport.request(method.upper(), url, headers=merged, **options)

    def get(self, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self._send("get", headers, options)

    def post(self, body: Any = None, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        if body is not None:
            options["json"] = body
        return self._send("post", headers, options)

    def put(self, body: Any = None, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        if body is not None:
            options["json"] = body
        return self._send("put", headers, options)

    def patch(self, body: Any = None, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        if body is not None:
            options["json"] = body
        return self._send("patch", headers, options)

    def merge(self, body: Any = None, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        """Partial update with the OData v2 MERGE method."""
        if body is not None:
            options["json"] = body
        return self._send("merge", headers, options)

    def delete(self, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self._send("delete", headers, options)

    def batch(self) -> "ODataBatch":
        """Start a batch against the same service and transport."""
        # Import here to avoid circular imports
        from odata_builder.core.batch import ODataBatch
        return ODataBatch(self.config, self.transport)

