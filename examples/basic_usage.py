"""
Example: Basic usage of odata_builder
=====================================

Builds a few queries against the public OData demo service.
"""

from odata_builder import ODataConfig, ODataAuth, ODataSession, SessionConfig, odata


SERVICE = "https://services.odata.org/V4/OData/OData.svc"


def example_build_urls():
    """Build URLs without sending anything."""

    q = odata({"service": SERVICE, "format": "json"})
    print(
        q.resource("Products")
        .filter("Price", "gt", 10)
        .and_("Name", "startswith", "B")
        .select("Name", "Price")
        .orderby("Price", "desc")
        .top(5)
        .query()
    )

    # Lambda over a collection navigation property
    print(odata({"service": SERVICE}).resource("Categories").any("Products", "Price", "lt", 3).query())

    # Composite key
    print(odata({"service": SERVICE}).resource("OrderDetails", {"OrderID": 1, "ProductID": 2}).query())


def example_send():
    """Send a query through a requests-backed transport."""

    cfg = ODataConfig(service=SERVICE, version="4.0")
    with ODataSession(SessionConfig(timeout=30)) as sess:
        res = odata(cfg, transport=sess).resource("Products").top(2).get()
        print(res.status_code, res.body[:200])


def example_connection_context():
    """Using ConnectionContext."""
    from odata_builder import ConnectionContext

    # Reads from environment variables: ODATA_SERVICE, ODATA_USER, ODATA_PASS, ...
    with ConnectionContext() as conn:
        res = conn.query().resource("Products").count().get()
        print("Products:", res.body)


def example_batch():
    """Group two MERGE requests into one $batch call."""
    cfg = ODataConfig(service="https://your-host.example.com/odata/v2/Catalog", version="2.0")
    auth = ODataAuth("basic", ("USER", "PASSWORD"))

    with ODataSession(SessionConfig(auth=auth)) as sess:
        batch = odata(cfg, transport=sess).batch()
        batch.resource("Products", 1).merge({"Name": "Bread"})
        batch.resource("Products", 2).merge({"Name": "Milk"})
        res = batch.send()
        print(res.status_code)


if __name__ == "__main__":
    example_build_urls()
    # Uncomment the example you want to run
    # example_send()
    # example_connection_context()
    # example_batch()
