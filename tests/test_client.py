"""
Autotag — HTTP tag registry tests
HttpTagRegistry against an in-process httpx.MockTransport (zero network).
"""

import json

import httpx
import pytest

from autotag.client import HttpTagRegistry, _build_headers, _raise_for_status
from autotag.errors import (
    TagRegistryAuthError,
    TagRegistryError,
    TagRegistryNotFoundError,
    TagRegistryRateLimitError,
    TagRegistryServerError,
)
from autotag.models import AutotagOptions
from autotag.orchestrator import Autotag
from autotag.storage import MemoryStore


class FakeTagService:
    """Minimal tag service: GET/POST /v1/tags."""

    def __init__(self, tags=None, status: int = 200):
        self.tags = list(tags or [])
        self.status = status
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"detail": "nope"})
        if request.method == "GET":
            return httpx.Response(200, json={"tags": self.tags})
        body = json.loads(request.content)
        self.tags = [t for t in self.tags if t not in body["remove"]]
        self.tags += [t for t in body["add"] if t not in self.tags]
        return httpx.Response(200, json={"tags": self.tags})

    def registry(self, **kwargs) -> HttpTagRegistry:
        return HttpTagRegistry(
            "https://tags.example/v1/",
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


# ── Helpers ──────────────────────────────────────────────────────────────────


class TestHelpers:
    def test_headers_without_key(self):
        assert _build_headers(None, "inst-1") == {"X-Installation-Id": "inst-1"}

    def test_headers_with_key(self):
        assert _build_headers("secret", "inst-1")["X-Autotag-Key"] == "secret"

    @pytest.mark.parametrize(
        "status,exc",
        [
            (401, TagRegistryAuthError),
            (403, TagRegistryAuthError),
            (404, TagRegistryNotFoundError),
            (429, TagRegistryRateLimitError),
            (500, TagRegistryServerError),
            (503, TagRegistryServerError),
            (400, TagRegistryError),
        ],
    )
    def test_raise_for_status(self, status, exc):
        response = httpx.Response(status, json={"detail": "boom"})
        with pytest.raises(exc) as info:
            _raise_for_status(response)
        assert info.value.status_code == status
        assert info.value.detail == "boom"

    def test_success_does_not_raise(self):
        _raise_for_status(httpx.Response(200, json={}))

    def test_non_json_error_body(self):
        with pytest.raises(TagRegistryServerError) as info:
            _raise_for_status(httpx.Response(502, text="bad gateway"))
        assert info.value.detail == "bad gateway"


# ── Requests ─────────────────────────────────────────────────────────────────


class TestHttpTagRegistry:
    @pytest.mark.anyio
    async def test_get_tags(self):
        service = FakeTagService(["topic:a", "vip"])
        async with service.registry(installation_id="inst-1", api_key="k") as registry:
            assert await registry.get_tags() == ["topic:a", "vip"]
        request = service.requests[0]
        assert request.url == "https://tags.example/v1/tags"
        assert request.headers["X-Installation-Id"] == "inst-1"
        assert request.headers["X-Autotag-Key"] == "k"

    @pytest.mark.anyio
    async def test_add_remove_single_request(self):
        service = FakeTagService(["topic:a"])
        async with service.registry() as registry:
            await registry.add_remove_tags(["topic:b"], ["topic:a"])
        assert len(service.requests) == 1
        assert json.loads(service.requests[0].content) == {"add": ["topic:b"], "remove": ["topic:a"]}
        assert service.tags == ["topic:b"]

    @pytest.mark.anyio
    async def test_single_tag_calls(self):
        service = FakeTagService()
        async with service.registry() as registry:
            await registry.add_tag("topic:x")
            await registry.remove_tag("topic:x")
        assert service.tags == []

    @pytest.mark.anyio
    async def test_error_status(self):
        service = FakeTagService(status=403)
        async with service.registry() as registry:
            with pytest.raises(TagRegistryAuthError):
                await registry.get_tags()

    @pytest.mark.anyio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        registry = HttpTagRegistry("https://tags.example", transport=httpx.MockTransport(handler))
        async with registry:
            with pytest.raises(TagRegistryError):
                await registry.get_tags()


class TestWithOrchestrator:
    @pytest.mark.anyio
    async def test_cycle_reconciles_remote_tags(self):
        service = FakeTagService(["topic:stale", "newsletter"])
        store = MemoryStore({"viewsByTopic": {"shoes": [900]}})
        async with service.registry() as registry:
            autotag = Autotag(store, registry, AutotagOptions(topicList=["shoes"], minViews=2), clock=lambda: 1000)
            result = await autotag.on_page_view("https://shop.example/shoes/boots")
        assert result.status == "applied"
        assert result.favorites == ["shoes"]
        assert service.tags == ["newsletter", "topic:shoes"]

    @pytest.mark.anyio
    async def test_remote_failure_does_not_raise(self):
        service = FakeTagService(status=500)
        async with service.registry() as registry:
            autotag = Autotag(MemoryStore(), registry, {"topicList": ["shoes"]})
            result = await autotag.on_page_view("https://shop.example/shoes")
        assert result.status == "failed"
