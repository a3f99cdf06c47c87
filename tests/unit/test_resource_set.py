"""
Tests for query execution, pagination and collection-level operations.
"""

import json

import pytest

from maximo_client import MaximoError, QueryUsageError, RequestFailedError, ResourceSet
from helpers import reply


PAGE_TWO = "https://demo.maximo:443/maximo/oslc/os/mxasset?pageno=2&oslc.pageSize=2"
COLLECTION = "/oslc/os/mxasset?"


class TestFetch:
    """Test query execution."""

    @pytest.mark.asyncio
    async def test_end_to_end_scenario(self, maximo, fake_transport, asset_page_one, asset_page_two):
        fake_transport.route("GET", "pageno=2", reply(200, asset_page_two))
        fake_transport.route("GET", COLLECTION, reply(200, asset_page_one))

        assert await maximo.authenticate() == ["JSESSIONID=abc; Path=/maximo; HttpOnly"]

        query = (
            maximo.resourceobject("MXASSET")
            .select(["assetnum", "status"])
            .where("status").equal("OPERATING")
            .orderby("assetnum", "desc")
            .pagesize(50)
        )
        page = await query.fetch()

        assert page.size() == 2
        sent = fake_transport.data_requests[0]
        assert sent.path == "/maximo/oslc/os/mxasset"
        assert sent.params["oslc.where"] == 'status="OPERATING"'
        assert sent.params["oslc.orderBy"] == "-assetnum"
        assert sent.params["oslc.pageSize"] == "50"
        assert sent.headers["Cookie"] == "JSESSIONID=abc"

        following = await page.nextpage(page.json())

        assert fake_transport.data_requests[1].url == PAGE_TWO
        assert isinstance(following, ResourceSet)
        assert following is not page
        assert following.size() == 1
        assert following.this_resource_set()[0]["assetnum"] == "1003"
        assert len(fake_transport.logins) == 1

    @pytest.mark.asyncio
    async def test_fetch_authenticates_first(self, maximo, fake_transport, asset_page_one):
        fake_transport.route("GET", COLLECTION, reply(200, asset_page_one))
        await maximo.resourceobject("MXASSET").fetch()
        assert fake_transport.requests[0].is_login
        assert maximo.is_authenticated()

    @pytest.mark.asyncio
    async def test_fetch_result_is_independent_of_builder(self, maximo, fake_transport, asset_page_one):
        fake_transport.route("GET", COLLECTION, reply(200, asset_page_one))
        builder = maximo.resourceobject("MXASSET").where("status").equal("OPERATING")
        page = await builder.fetch()

        builder.and_("siteid").equal("BEDFORD")

        assert len(page.spec.clauses) == 1
        assert builder.size() == 0

    @pytest.mark.asyncio
    async def test_unterminated_clause_fails_before_request(self, maximo, fake_transport):
        with pytest.raises(QueryUsageError):
            await maximo.resourceobject("MXASSET").where("status").fetch()
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [0, -5])
    async def test_bad_pagesize_fails_before_request(self, maximo, fake_transport, size):
        with pytest.raises(QueryUsageError):
            await maximo.resourceobject("MXASSET").pagesize(size).fetch()
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_server_error_carries_status_and_body(self, maximo, fake_transport):
        body = {"oslc:Error": {"oslc:message": "BMXAA8727E - bad where", "spi:reasonCode": "BMXAA8727E",
                               "oslc:statusCode": "400"}}
        fake_transport.route("GET", COLLECTION, reply(400, body))

        with pytest.raises(RequestFailedError) as exc_info:
            await maximo.resourceobject("MXASSET").fetch()

        err = exc_info.value
        assert err.status_code == 400
        assert json.loads(err.body) == body
        assert err.reason_code == "BMXAA8727E"

    @pytest.mark.asyncio
    async def test_non_envelope_body(self, maximo, fake_transport):
        fake_transport.route("GET", COLLECTION, reply(200, [1, 2]))
        with pytest.raises(MaximoError, match="collection envelope"):
            await maximo.resourceobject("MXASSET").fetch()

    @pytest.mark.asyncio
    async def test_echoed_filter_round_trips(self, maximo, fake_transport):
        def echo(request):
            return reply(200, {"member": [], "echo": request.params["oslc.where"]})

        fake_transport.route("GET", COLLECTION, echo)

        numeric = await maximo.resourceobject("MXASSET").where("priority").in_([1, 2], True).fetch()
        text = await maximo.resourceobject("MXASSET").where("siteid").in_(["A", "B"], False).fetch()

        assert numeric.json()["echo"] == "priority in [1,2]"
        assert text.json()["echo"] == 'siteid in ["A","B"]'


class TestPagination:
    """Test server-driven pagination."""

    @pytest.mark.asyncio
    async def test_no_link_returns_none_without_request(self, maximo, fake_transport, asset_page_two):
        page = maximo.resourceobject("MXASSET")
        page.json(asset_page_two)

        assert await page.nextpage() is None
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_explicit_envelope_is_used(self, maximo, fake_transport, asset_page_one, asset_page_two):
        fake_transport.route("GET", "pageno=2", reply(200, asset_page_two))
        builder = maximo.resourceobject("MXASSET")

        following = await builder.nextpage(asset_page_one)

        assert [r.url for r in fake_transport.data_requests] == [PAGE_TWO]
        assert following.size() == 1

    @pytest.mark.asyncio
    async def test_pages_iterates_all(self, maximo, fake_transport, asset_page_one, asset_page_two):
        fake_transport.route("GET", "pageno=2", reply(200, asset_page_two))
        fake_transport.route("GET", COLLECTION, reply(200, asset_page_one))

        sizes = [page.size() async for page in maximo.resourceobject("MXASSET").pages()]

        assert sizes == [2, 1]

    @pytest.mark.asyncio
    async def test_size_is_page_not_total(self, maximo, fake_transport, asset_page_one):
        fake_transport.route("GET", COLLECTION, reply(200, asset_page_one))
        page = await maximo.resourceobject("MXASSET").fetch()
        assert page.size() == 2
        assert page.total_count() == 3

    @pytest.mark.asyncio
    async def test_nextpage_failure(self, maximo, fake_transport, asset_page_one):
        fake_transport.route("GET", "pageno=2", reply(503))
        with pytest.raises(RequestFailedError) as exc_info:
            await maximo.resourceobject("MXASSET").nextpage(asset_page_one)
        assert exc_info.value.status_code == 503


class TestResults:
    """Test access to page members."""

    def test_resource_by_index_and_uri(self, maximo, asset_page_one):
        page = maximo.resourceobject("MXASSET")
        page.json(asset_page_one)

        first = page.resource(0)
        assert first["spi:assetnum"] == "1001"

        uri = asset_page_one["rdfs:member"][1]["rdf:about"]
        assert page.resource(uri).get("spi:assetnum") == "1002"

        other = page.resource("https://demo.maximo:443/maximo/oslc/os/mxasset/_other")
        assert other.json() == {}
        assert other.uri.endswith("_other")

    def test_resource_index_out_of_range(self, maximo):
        with pytest.raises(IndexError):
            maximo.resourceobject("MXASSET").resource(0)

    def test_iteration_yields_resources(self, maximo, asset_page_two):
        page = maximo.resourceobject("MXASSET")
        page.json(asset_page_two)
        assert [r["assetnum"] for r in page] == ["1003"]
        assert len(page) == 1


class TestCreateAndInvoke:
    """Test record creation, actions and schema reads."""

    @pytest.mark.asyncio
    async def test_create_with_body(self, maximo, fake_transport):
        created = {"href": "https://demo.maximo:443/maximo/oslc/os/mxasset/_new", "assetnum": "NEW1"}
        fake_transport.route("POST", "/oslc/os/mxasset", reply(201, created))

        resource = await maximo.resourceobject("MXASSET").create({"assetnum": "NEW1", "siteid": "BEDFORD"},
                                                                 ["assetnum"])

        sent = fake_transport.data_requests[0]
        assert sent.headers["properties"] == "assetnum"
        assert json.loads(sent.body) == {"assetnum": "NEW1", "siteid": "BEDFORD"}
        assert resource.uri.endswith("_new")
        assert resource.json() == created

    @pytest.mark.asyncio
    async def test_create_without_body_uses_location(self, maximo, fake_transport):
        location = "https://demo.maximo:443/maximo/oslc/os/mxasset/_new"
        fake_transport.route("POST", "/oslc/os/mxasset", reply(201, None, [("Location", location)]))

        resource = await maximo.resourceobject("MXASSET").create({"assetnum": "NEW1"})

        assert resource.uri == location
        assert resource["assetnum"] == "NEW1"

    @pytest.mark.asyncio
    async def test_invoke_action(self, maximo, fake_transport):
        wo = "https://demo.maximo:443/maximo/oslc/os/mxwodetail/_V08xMDAx"
        fake_transport.route("POST", wo, reply(204))

        result = await (
            maximo.resourceobject("MXWODETAIL")
            .action("changeStatus")
            .invoke({"url": wo, "status": "APPR", "memo": "approved"})
        )

        sent = fake_transport.data_requests[0]
        assert result is None
        assert sent.params["action"] == "wsmethod:changeStatus"
        assert sent.headers["x-method-override"] == "PATCH"
        assert json.loads(sent.body) == {"status": "APPR", "memo": "approved"}

    @pytest.mark.asyncio
    async def test_invoke_requires_action(self, maximo, fake_transport):
        with pytest.raises(QueryUsageError):
            await maximo.resourceobject("MXWODETAIL").invoke({"url": "https://x/y"})
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_schema(self, maximo, fake_transport):
        fake_transport.route("GET", "/oslc/jsonschemas/mxasset", reply(200, {"title": "MXASSET"}))

        assert await maximo.resourceobject("MXASSET").schema() == {"title": "MXASSET"}
        await maximo.resourceobject("MXASSET").schemarelated()

        assert fake_transport.data_requests[0].params == {}
        assert fake_transport.data_requests[1].params == {"oslc.select": "*"}
