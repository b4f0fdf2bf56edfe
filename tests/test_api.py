"""
Tests for odata_builder.api module.
"""

import pytest
from unittest.mock import MagicMock, patch
from urllib.parse import unquote

from fastapi.testclient import TestClient

from odata_builder.api.gateway import ODataGateway, build_query, create_app
from odata_builder.api.models import QueryRequest
from odata_builder.core.errors import ODataBuilderError, ODataUpstreamError
from odata_builder.core.session import TransportResponse

from conftest import SERVICE


@pytest.fixture
def gateway():
    return ODataGateway(service=SERVICE, api_key="secret", max_top=50)


@pytest.fixture
def client(gateway):
    return TestClient(create_app(gateway))


def _session_returning(response=None, error=None):
    sess = MagicMock()
    sess.__enter__.return_value = sess
    sess.__exit__.return_value = False
    if error is not None:
        sess.get.side_effect = error
        sess.request.side_effect = error
    else:
        sess.request.return_value = response
    return sess


class TestBuildQuery:
    """Tests for translating request models into builder calls."""

    def test_full_request(self):
        req = QueryRequest(
            resources=[{"name": "Categories", "key": 1}, {"name": "Products"}],
            filters=[
                {"field": "Price", "operator": "gt", "value": 5},
                {"field": "Name", "operator": "eq", "value": "Milk", "combinator": "or"},
            ],
            select=["Name", "Price"],
            orderby=[{"field": "Price", "direction": "desc"}],
            top=3,
        )
        url = build_query(req, default_service=SERVICE).query()
        assert url.startswith(f"{SERVICE}/Categories(1)/Products?$top=3&$filter=")
        assert "$filter=(Price%20gt%205%20or%20Name%20eq%20'Milk')" in url
        assert url.endswith("$select=Name%2CPrice&$orderby=Price%20desc")

    def test_lambda_and_identifier(self):
        req = QueryRequest(filters=[
            {"field": "Items", "quantifier": "any", "inner_property": "Price", "operator": "gt", "value": 1},
            {"field": "Price", "operator": "lt", "value": "Cost", "value_is_identifier": True, "combinator": "not"},
        ])
        url = build_query(req, default_service=SERVICE).query()
        assert unquote(url.split("$filter=", 1)[1]) == "(Items/any(p0:p0/Price gt 1) and not (Price lt Cost))"

    def test_composite_key_from_json_object(self):
        req = QueryRequest(resources=[{"name": "Rows", "key": {"Id": 1, "Cat": "A"}}])
        assert build_query(req, default_service=SERVICE).query() == f"{SERVICE}/Rows(Id=1,Cat='A')"

    def test_unknown_combinator(self):
        req = QueryRequest(filters=[{"field": "A", "operator": "eq", "value": 1, "combinator": "xor"}])
        with pytest.raises(ODataBuilderError):
            build_query(req)


class TestEndpoints:
    """Tests for the HTTP endpoints."""

    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json()["ok"] is True

    def test_query_url(self, client):
        res = client.post("/query/url", json={
            "resources": [{"name": "Products"}],
            "count": True,
            "format": "json",
            "version": "4.0",
        })
        assert res.status_code == 200
        assert res.json() == {
            "url": f"{SERVICE}/Products/$count",
            "headers": {"OData-Version": "4.0"},
        }

    def test_query_url_rejects_bad_key(self, client):
        res = client.post("/query/url", json={"resources": [{"name": "Products", "key": [1, 2]}]})
        assert res.status_code == 400

    def test_query_url_rejects_negative_top(self, client):
        res = client.post("/query/url", json={"top": -1})
        assert res.status_code == 422

    def test_execute_requires_key(self, client):
        res = client.post("/query/execute", json={}, headers={"x-api-key": "wrong"})
        assert res.status_code == 401

    def test_execute_disabled_without_key(self):
        with patch.dict("os.environ", {"ODATA_API_KEY": ""}):
            client = TestClient(create_app(ODataGateway(service=SERVICE, api_key="")))
            res = client.post("/query/execute", json={}, headers={"x-api-key": "anything"})
        assert res.status_code == 403

    def test_execute(self, client):
        sess = _session_returning(TransportResponse(200, '{"value": []}', {"Content-Type": "application/json"}))
        with patch.object(ODataGateway, "build_session", return_value=sess):
            res = client.post(
                "/query/execute",
                json={"resources": [{"name": "Products"}], "top": 1000},
                headers={"x-api-key": "secret"},
            )
        assert res.status_code == 200
        data = res.json()
        assert data["url"] == f"{SERVICE}/Products?$top=50"
        assert data["body"] == '{"value": []}'
        sess.request.assert_called_once_with("GET", f"{SERVICE}/Products?$top=50", headers={})
        sess.__exit__.assert_called_once()

    def test_execute_upstream_error(self, client):
        error = ODataUpstreamError(500, "boom", f"{SERVICE}/Products")
        sess = _session_returning(error=error)
        with patch.object(ODataGateway, "build_session", return_value=sess):
            res = client.post(
                "/query/execute",
                json={"resources": [{"name": "Products"}]},
                headers={"x-api-key": "secret"},
            )
        assert res.status_code == 502
        assert res.json()["detail"]["upstream_status"] == 500
