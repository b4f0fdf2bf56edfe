"""
Tests for odata_builder.query.builder module.
"""

import pytest

from odata_builder import odata
from odata_builder.core.config import ODataConfig
from odata_builder.core.errors import InvalidKeyError, InvalidValueError, ODataBuilderError
from odata_builder.query.builder import ODataQuery
from odata_builder.query.expression import expression
from odata_builder.query.resource import composite_key, key

from conftest import SERVICE, clause


class TestResourcePath:
    """Tests for resource segments and keys."""

    def test_plain_resource(self, q):
        assert q.resource("Products").query() == f"{SERVICE}/Products"

    def test_empty_builder_is_valid(self):
        assert ODataQuery().query() == "/"

    def test_single_key(self, q):
        assert q.resource("Products", 5).query() == f"{SERVICE}/Products(5)"

    def test_string_key_is_escaped_and_encoded(self, q):
        assert q.resource("People", "O'Neil Jr").query() == f"{SERVICE}/People('O''Neil%20Jr')"

    def test_composite_key(self, q):
        url = q.resource("Products", {"Id": 5, "Cat": "A"}).query()
        assert url == f"{SERVICE}/Products(Id=5,Cat='A')"

    def test_composite_key_keeps_input_order(self, q):
        assert q.resource("Rows", {"b": 1, "a": 2}).query() == f"{SERVICE}/Rows(b=1,a=2)"

    def test_explicit_key_constructors(self, q):
        q.resource("Categories", key(1)).resource("Products", composite_key({"Id": 2}))
        assert q.query() == f"{SERVICE}/Categories(1)/Products(Id=2)"

    def test_nested_segments(self, q):
        assert q.resource("Categories", 1).resource("Products").query() == f"{SERVICE}/Categories(1)/Products"

    def test_configured_prefix(self):
        q = ODataQuery(ODataConfig(service=SERVICE, resources="Categories(1)"))
        assert q.resource("Products").query() == f"{SERVICE}/Categories(1)/Products"

    def test_invalid_keys(self, q):
        for bad in ([1, 2], {}, object(), {"Id": [1]}):
            with pytest.raises(InvalidKeyError):
                q.resource("Products", bad)


class TestFilter:
    """Tests for filter construction through the builder."""

    def test_single_filter(self, q):
        url = q.resource("Products").filter("Name", "eq", "Bread").query()
        assert url == f"{SERVICE}/Products?$filter=Name%20eq%20'Bread'"
        assert url.count("$filter=") == 1

    def test_and_chain(self, q):
        q.filter("Name", "eq", "Bread").and_("Price", "gt", 5)
        assert clause(q.query(), "$filter") == "(Name eq 'Bread' and Price gt 5)"

    def test_and_chain_is_left_associative(self, q):
        q.filter("A", "eq", 1).and_("B", "eq", 2).and_("C", "eq", 3)
        assert clause(q.query(), "$filter") == "((A eq 1 and B eq 2) and C eq 3)"

    def test_or(self, q):
        q.filter("Name", "eq", "Bread").or_("Name", "eq", "Milk")
        assert clause(q.query(), "$filter") == "(Name eq 'Bread' or Name eq 'Milk')"

    def test_or_without_filter(self, q):
        q.or_("Name", "eq", "Milk")
        assert clause(q.query(), "$filter") == "Name eq 'Milk'"

    def test_not(self, q):
        q.not_("Name", "eq", "Bread")
        assert clause(q.query(), "$filter") == "not (Name eq 'Bread')"

    def test_not_is_anded(self, q):
        q.filter("Price", "gt", 5).not_("Name", "eq", "Bread")
        assert clause(q.query(), "$filter") == "(Price gt 5 and not (Name eq 'Bread'))"

    def test_prebuilt_expression(self, q):
        q.filter(expression("Name", "eq", "Bread").or_(expression("Name", "eq", "Milk")))
        q.filter("Price", "lt", 3)
        assert clause(q.query(), "$filter") == "((Name eq 'Bread' or Name eq 'Milk') and Price lt 3)"

    def test_incomplete_filter_raises(self, q):
        with pytest.raises(ODataBuilderError):
            q.filter("Name", "eq")
        with pytest.raises(ODataBuilderError):
            q.filter("Name")


class TestLambdas:
    """Tests for bound variable allocation."""

    def test_any(self, q):
        q.any("Items", "Price", "gt", 10)
        assert clause(q.query(), "$filter") == "Items/any(p0:p0/Price gt 10)"

    def test_all(self, q):
        q.all("Items", "Qty", "ge", 1)
        assert clause(q.query(), "$filter") == "Items/all(p0:p0/Qty ge 1)"

    def test_distinct_variables(self, q):
        q.any("Items", "Price", "gt", 10).all("Items", "Price", "lt", 100)
        text = clause(q.query(), "$filter")
        assert text == "(Items/any(p0:p0/Price gt 10) and Items/all(p1:p1/Price lt 100))"

    def test_nested_variables(self, q):
        q.any("Orders", q.quantify("all", "Items", "Price"), "gt", 10)
        assert clause(q.query(), "$filter") == "Orders/any(p1:p1/Items/all(p0:p0/Price gt 10))"

    def test_discarded_variable_not_reused(self, q):
        q.quantify("any", "Items")
        q.any("Items", "Price", "gt", 10)
        assert clause(q.query(), "$filter") == "Items/any(p1:p1/Price gt 10)"

    def test_counter_is_per_instance(self, config):
        first = ODataQuery(config).any("Items", "Price", "gt", 1)
        second = ODataQuery(config).any("Items", "Price", "gt", 1)
        assert first.query() == second.query()
        assert "p0" in clause(second.query(), "$filter")


class TestClauses:
    """Tests for the remaining clauses and their order."""

    def test_zero_top_and_skip_are_emitted(self, q):
        assert q.top(0).skip(0).query() == f"{SERVICE}/?$top=0&$skip=0"

    def test_invalid_top_and_skip(self, q):
        for bad in (-1, "5", 2.0, True):
            with pytest.raises(InvalidValueError):
                q.top(bad)
            with pytest.raises(InvalidValueError):
                q.skip(bad)

    def test_select(self, q):
        q.select("Name", "Price").select(["Name"])
        assert clause(q.query(), "$select") == "Name,Price,Name"

    def test_select_mixed_forms(self, q):
        q.select(["Name", "Price"], "Id").expand(("Category",), "Supplier")
        url = q.query()
        assert clause(url, "$select") == "Name,Price,Id"
        assert clause(url, "$expand") == "Category,Supplier"

    def test_expand(self, q):
        q.expand("Category", "Supplier/Address")
        url = q.query()
        assert "$expand=Category%2CSupplier%2FAddress" in url
        assert clause(url, "$expand") == "Category,Supplier/Address"

    def test_search(self, q):
        assert "$search=blue%20OR%20green" in q.search("blue OR green").query()

    def test_empty_search_is_skipped(self, q):
        assert "$search" not in q.search("").query()

    def test_orderby_forms(self, q):
        q.orderby("Name").orderby("Price", "DESC").orderby("Rating", "asc").orderby("Id", False)
        assert clause(q.query(), "$orderby") == "Name,Price desc,Rating asc,Id desc"

    def test_orderby_pairs(self, q):
        q.orderby(["Name", "desc"], ["Price"], "Id")
        assert clause(q.query(), "$orderby") == "Name desc,Price,Id"

    def test_orderby_empty_pairs(self, q):
        q.orderby([]).orderby(["Name", "desc"], [])
        assert clause(q.query(), "$orderby") == "Name desc"

    def test_orderby_only_empty(self, q):
        assert "$orderby" not in q.orderby([]).query()

    def test_format(self):
        q = ODataQuery(ODataConfig(service=SERVICE, format="json"))
        assert q.resource("Products").query() == f"{SERVICE}/Products?$format=json"

    def test_count_suppresses_format(self):
        q = ODataQuery(ODataConfig(service=SERVICE, format="json"))
        url = q.resource("Products").count().query()
        assert url == f"{SERVICE}/Products/$count"
        assert "$format" not in url

    def test_count_keeps_filter(self, q):
        url = q.resource("Products").filter("Price", "gt", 5).count().query()
        assert url == f"{SERVICE}/Products/$count?$filter=Price%20gt%205"

    def test_custom_parameters(self, q):
        q.custom("sap-client", "100").custom("debug").custom({"flag": True, "x y": "a&b"})
        assert q.query() == f"{SERVICE}/?sap-client=100&debug&flag=true&x%20y=a%26b"

    def test_configured_custom_parameters_come_first(self):
        q = ODataQuery(ODataConfig(service=SERVICE, custom={"sap-client": "100"}))
        assert q.custom("debug", "1").query() == f"{SERVICE}/?sap-client=100&debug=1"

    def test_fixed_clause_order(self):
        q = ODataQuery(ODataConfig(service=SERVICE, format="json"))
        (
            q.resource("Products")
            .custom("sap-client", "100")
            .orderby("Name")
            .search("bread")
            .expand("Category")
            .select("Name")
            .filter("Price", "gt", 5)
            .skip(10)
            .top(5)
        )
        assert q.query() == (
            f"{SERVICE}/Products?$format=json&$top=5&$skip=10"
            "&$filter=Price%20gt%205&$select=Name&$expand=Category"
            "&$search=bread&$orderby=Name&sap-client=100"
        )

    def test_query_is_idempotent(self, q):
        q.resource("Products", 1).filter("Name", "eq", "Bread").any("Items", "Price", "gt", 1).top(3)
        first = q.query()
        assert q.query() == first
        assert str(q) == first

    def test_factory(self):
        q = odata({"service": SERVICE, "format": "json"}, format="xml")
        assert q.resource("Products").query() == f"{SERVICE}/Products?$format=xml"


class TestVerbs:
    """Tests for requests handed to the transport."""

    def test_headers_include_protocol_versions(self):
        q = ODataQuery(ODataConfig(
            service=SERVICE,
            headers={"Accept": "application/json"},
            version="4.0",
            max_version="4.01",
        ))
        assert q.headers == {
            "Accept": "application/json",
            "OData-Version": "4.0",
            "OData-MaxVersion": "4.01",
        }

    def test_get(self, config, mock_transport):
        q = ODataQuery(config, transport=mock_transport).resource("Products").top(1)
        res = q.get()
        mock_transport.request.assert_called_once_with("GET", f"{SERVICE}/Products?$top=1", headers={})
        assert res.status_code == 200

    def test_caller_headers_win(self, mock_transport):
        cfg = ODataConfig(service=SERVICE, headers={"Accept": "application/json"}, version="4.0")
        q = ODataQuery(cfg, transport=mock_transport).resource("Products")
        q.get(headers={"Accept": "text/plain"})
        headers = mock_transport.request.call_args.kwargs["headers"]
        assert headers == {"Accept": "text/plain", "OData-Version": "4.0"}

    def test_write_verbs_send_json(self, config, mock_transport):
        q = ODataQuery(config, transport=mock_transport).resource("Products", 1)
        for verb, method in [("post", "POST"), ("put", "PUT"), ("patch", "PATCH"), ("merge", "MERGE")]:
            getattr(q, verb)({"Name": "Bread"})
            mock_transport.request.assert_called_with(
                method, f"{SERVICE}/Products(1)", headers={}, json={"Name": "Bread"}
            )

    def test_delete(self, config, mock_transport):
        ODataQuery(config, transport=mock_transport).resource("Products", 1).delete()
        mock_transport.request.assert_called_once_with("DELETE", f"{SERVICE}/Products(1)", headers={})

    def test_verb_without_transport(self, q):
        with pytest.raises(ODataBuilderError):
            q.resource("Products").get()
