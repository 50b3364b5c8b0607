"""Tests for the Elasticsearch bulk client"""
import json
from datetime import datetime, timezone
import httpx
import pytest

from config import Config
from reporting.client import ElasticSearchBulkClient
from reporting.payload import Record


def make_records(count=2):
    timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Record("gauge", f"app__metric_{i}", {"server": "host-1"}, {"value": float(i)}, timestamp)
        for i in range(count)
    ]


class TestElasticSearchBulkClient:
    """Test bulk writes against a mocked transport"""

    def setup_method(self):
        self.requests = []

    def make_client(self, handler, **kwargs):
        def record_request(request):
            self.requests.append(request)
            return handler(request)

        return ElasticSearchBulkClient(
            base_url="http://es:9200/",
            index="metrics",
            transport=httpx.MockTransport(record_request),
            **kwargs
        )

    @pytest.mark.asyncio
    async def test_write_success(self):
        client = self.make_client(lambda r: httpx.Response(200, json={"errors": False, "items": []}))

        assert await client.write(make_records()) is True

        [request] = self.requests
        assert request.method == "POST"
        assert str(request.url) == "http://es:9200/_bulk"
        assert request.headers["content-type"] == "application/x-ndjson"

        lines = request.content.decode().splitlines()
        assert len(lines) == 4
        assert json.loads(lines[0]) == {"index": {"_index": "metrics"}}
        assert json.loads(lines[1])["name"] == "app__metric_0"
        assert request.content.decode().endswith("\n")
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_payload_skips_request(self):
        client = self.make_client(lambda r: httpx.Response(500))

        assert await client.write([]) is True
        assert self.requests == []
        await client.close()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = self.make_client(lambda r: httpx.Response(503, text="unavailable"))

        assert await client.write(make_records()) is False
        await client.close()

    @pytest.mark.asyncio
    async def test_partial_bulk_failure(self):
        body = {
            "errors": True,
            "items": [
                {"index": {"status": 201}},
                {"index": {"status": 400, "error": {"type": "mapper_parsing_exception"}}},
            ],
        }
        client = self.make_client(lambda r: httpx.Response(200, json=body))

        assert await client.write(make_records()) is False
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = self.make_client(refuse)

        assert await client.write(make_records()) is False
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_response_is_success(self):
        client = self.make_client(lambda r: httpx.Response(200, text="ok"))

        assert await client.write(make_records()) is True
        await client.close()

    @pytest.mark.asyncio
    async def test_basic_auth(self):
        client = self.make_client(lambda r: httpx.Response(200, json={"errors": False}),
                                  username="elastic", password="secret")

        await client.write(make_records(1))

        assert self.requests[0].headers["authorization"].startswith("Basic ")
        await client.close()

    @pytest.mark.asyncio
    async def test_api_key_auth(self):
        client = self.make_client(lambda r: httpx.Response(200, json={"errors": False}),
                                  api_key="abc123")

        await client.write(make_records(1))

        assert self.requests[0].headers["authorization"] == "ApiKey abc123"
        await client.close()

    def test_from_config(self):
        config = Config(elasticsearch_url="https://es:9200", elasticsearch_index="app")

        client = ElasticSearchBulkClient.from_config(config)

        assert client.base_url == "https://es:9200"
        assert client.index == "app"
