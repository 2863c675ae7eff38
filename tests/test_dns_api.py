"""Tests for the DNS records resource."""

import json

import httpx
import pytest

from cfclient import CloudflareClient, ClientOptions
from cfclient.core.errors import CloudflareHttpError
from cfclient.dns import (
    CreateDnsRecordRequest,
    DnsRecordType,
    ListDnsRecordsFilters,
    PatchDnsRecordRequest,
    UpdateDnsRecordRequest,
    build_batch_plan,
)

BASE_URL = "https://api.cloudflare.test/client/v4/"
ZONE = "023e105f4ecef8ad9ca31a8372d0c353"


def _record(record_id, name="www.example.com", record_type="A", content="192.0.2.1"):
    return {
        "id": record_id,
        "name": name,
        "type": record_type,
        "content": content,
        "proxied": False,
        "ttl": 1,
        "created_on": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def client_for(make_pipeline):
    """Build a CloudflareClient over a ScriptedTransport with fake time."""
    clients = []

    def _make(transport, **overrides):
        options = ClientOptions(api_token="test-token", api_base_url=BASE_URL)
        client = CloudflareClient(
            options, transport=transport.transport(), pipeline=make_pipeline(**overrides)
        )
        clients.append(client)
        return client

    return _make


class TestReads:
    @pytest.mark.asyncio
    async def test_get(self, scripted, client_for, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope(_record("r1"))))
        client = client_for(transport)

        record = await client.dns.get(ZONE, "r1")

        assert record.id == "r1"
        assert record.created_on.year == 2024
        request = transport.requests[0]
        assert request.url.path == f"/client/v4/zones/{ZONE}/dns_records/r1"
        assert request.headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_path_segments_are_escaped(self, scripted, client_for, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope(_record("r1"))))
        client = client_for(transport)

        await client.dns.get(ZONE, "../zones")

        assert transport.requests[0].url.raw_path.decode().endswith("/dns_records/..%2Fzones")

    @pytest.mark.asyncio
    async def test_empty_ids_rejected(self, scripted, client_for):
        transport = scripted(httpx.Response(200))
        client = client_for(transport)

        with pytest.raises(ValueError):
            await client.dns.get("", "r1")
        with pytest.raises(ValueError):
            await client.dns.delete(ZONE, "  ")
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_list_all_walks_pages(self, scripted, client_for, make_envelope):
        records = [_record(f"r{i}", name=f"h{i}.example.com") for i in range(5)]

        def _page(request):
            page = int(request.url.params["page"])
            per_page = int(request.url.params["per_page"])
            chunk = records[(page - 1) * per_page : page * per_page]
            info = {"page": page, "per_page": per_page, "count": len(chunk), "total_count": 5, "total_pages": 3}
            return httpx.Response(200, json=make_envelope(chunk, result_info=info))

        transport = scripted(_page)
        client = client_for(transport)

        ids = [record.id async for record in client.dns.list_all(ZONE, per_page=2)]

        assert ids == ["r0", "r1", "r2", "r3", "r4"]
        assert [r.url.params["page"] for r in transport.requests] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_list_filters(self, scripted, client_for, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope([])))
        client = client_for(transport)

        await client.dns.list(ZONE, ListDnsRecordsFilters(type=DnsRecordType.TXT, proxied=False))

        params = transport.requests[0].url.params
        assert params["type"] == "TXT"
        assert params["proxied"] == "false"
        assert params["page"] == "1"

    @pytest.mark.asyncio
    async def test_find_by_name(self, scripted, client_for, make_envelope):
        transport = scripted(
            httpx.Response(200, json=make_envelope([_record("r9", name="api.example.com")])),
            httpx.Response(200, json=make_envelope([])),
        )
        client = client_for(transport)

        found = await client.dns.find_by_name(ZONE, "api.example.com", DnsRecordType.A)
        missing = await client.dns.find_by_name(ZONE, "nope.example.com")

        assert found.id == "r9"
        assert missing is None
        assert transport.requests[0].url.params["name"] == "api.example.com"
        assert transport.requests[0].url.params["type"] == "A"


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_is_not_retried(self, scripted, client_for, make_envelope):
        transport = scripted(
            httpx.Response(503, json=make_envelope(success=False)),
            httpx.Response(200, json=make_envelope(_record("new"))),
        )
        client = client_for(transport)
        request = CreateDnsRecordRequest(type=DnsRecordType.A, name="www.example.com", content="192.0.2.1")

        with pytest.raises(CloudflareHttpError):
            await client.dns.create(ZONE, request)

        assert transport.calls == 1
        body = json.loads(transport.requests[0].content)
        assert body == {"type": "A", "name": "www.example.com", "content": "192.0.2.1", "ttl": 1}

    @pytest.mark.asyncio
    async def test_update_is_retried(self, scripted, client_for, make_envelope):
        transport = scripted(
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json=make_envelope(_record("r1", content="192.0.2.9"))),
        )
        client = client_for(transport)
        request = UpdateDnsRecordRequest(type=DnsRecordType.A, name="www.example.com", content="192.0.2.9")

        record = await client.dns.update(ZONE, "r1", request)

        assert record.content == "192.0.2.9"
        assert transport.calls == 2
        assert transport.requests[0].method == "PUT"

    @pytest.mark.asyncio
    async def test_patch_sends_only_set_fields(self, scripted, client_for, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope(_record("r1"))))
        client = client_for(transport)

        await client.dns.patch(ZONE, "r1", PatchDnsRecordRequest(ttl=300))

        assert transport.requests[0].method == "PATCH"
        assert json.loads(transport.requests[0].content) == {"ttl": 300}

    @pytest.mark.asyncio
    async def test_delete(self, scripted, client_for, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope({"id": "r1"})))
        client = client_for(transport)

        assert await client.dns.delete(ZONE, "r1") is None
        assert transport.requests[0].method == "DELETE"


class TestBatch:
    @pytest.mark.asyncio
    async def test_batch_payload(self, scripted, client_for, make_envelope):
        result = {"deletes": [_record("old")], "posts": [_record("new", record_type="CNAME", content="example.net")]}
        transport = scripted(httpx.Response(200, json=make_envelope(result)))
        client = client_for(transport)
        plan = build_batch_plan(
            creates=[CreateDnsRecordRequest(type=DnsRecordType.CNAME, name="www.example.com", content="example.net")],
            deletes=["old"],
            patches={"r2": PatchDnsRecordRequest(comment="keep")},
        )

        outcome = await client.dns.batch(ZONE, plan)

        request = transport.requests[0]
        assert request.url.path == f"/client/v4/zones/{ZONE}/dns_records/batch"
        body = json.loads(request.content)
        assert list(body) == ["deletes", "patches", "posts"]
        assert body["patches"] == [{"id": "r2", "comment": "keep"}]
        assert outcome.deletes[0].id == "old"
        assert outcome.creates[0].type == "CNAME"
        assert outcome.replaces == []
