"""Unit tests for the Pinata content store adapter (httpx.MockTransport)."""

import json

import httpx
import pytest

from auditmarket.config.marketplace_config import StorageConfig
from auditmarket.domain.errors import ExternalServiceError
from auditmarket.infrastructure.adapters.storage.pinata_content_store import (
    PinataContentStore,
)

CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
CONFIG = StorageConfig(pinata_jwt="test-jwt")


def _store(handler) -> PinataContentStore:
    return PinataContentStore(CONFIG, transport=httpx.MockTransport(handler))


class TestPut:
    """Tests for pinning documents."""

    @pytest.mark.asyncio
    async def test_pins_document(self) -> None:
        """The canonical document is pinned with its name and the CID returned."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"IpfsHash": CID, "PinSize": 10})

        cid = await _store(handler).put(b'{"kind":"request"}', "audit-request-vault.json")

        assert cid == CID
        request = seen[0]
        assert request.url == "https://api.pinata.cloud/pinning/pinJSONToIPFS"
        assert request.headers["Authorization"] == "Bearer test-jwt"
        body = json.loads(request.content)
        assert body == {
            "pinataContent": {"kind": "request"},
            "pinataMetadata": {"name": "audit-request-vault.json"},
        }

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        """A rejected pin is an external service error."""
        store = _store(lambda request: httpx.Response(401, json={"error": "bad jwt"}))
        with pytest.raises(ExternalServiceError) as exc_info:
            await store.put(b"{}", "x.json")
        assert exc_info.value.service == "content_store"
        assert exc_info.value.reason == "HTTP 401"

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        """Connection failures are external service errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExternalServiceError):
            await _store(handler).put(b"{}", "x.json")

    @pytest.mark.asyncio
    async def test_missing_hash_in_reply(self) -> None:
        """A reply without IpfsHash is treated as a failure."""
        store = _store(lambda request: httpx.Response(200, json={"ok": True}))
        with pytest.raises(ExternalServiceError):
            await store.put(b"{}", "x.json")

    @pytest.mark.asyncio
    async def test_non_json_payload(self) -> None:
        """Only JSON payloads can be pinned."""
        store = _store(lambda request: httpx.Response(200, json={"IpfsHash": CID}))
        with pytest.raises(ExternalServiceError, match="not JSON"):
            await store.put(b"not json", "x.bin")


class TestGet:
    """Tests for reading documents through the gateway."""

    @pytest.mark.asyncio
    async def test_reads_from_gateway(self) -> None:
        """Documents are fetched from the configured gateway."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == f"https://gateway.pinata.cloud/ipfs/{CID}"
            return httpx.Response(200, json={"kind": "result"})

        assert await _store(handler).get(CID) == {"kind": "result"}

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        """Gateway errors are external service errors."""
        store = _store(lambda request: httpx.Response(404))
        with pytest.raises(ExternalServiceError, match="HTTP 404"):
            await store.get(CID)

    @pytest.mark.asyncio
    async def test_non_object(self) -> None:
        """Only JSON objects are evidence documents."""
        store = _store(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(ExternalServiceError, match="not a JSON object"):
            await store.get(CID)


class TestConfiguration:
    """Tests for construction."""

    def test_requires_jwt(self) -> None:
        """The adapter cannot be built without a token."""
        with pytest.raises(ValueError, match="PINATA_JWT"):
            PinataContentStore(StorageConfig())

    def test_gateway_url_trailing_slash(self) -> None:
        """Gateway URLs are joined without doubled slashes."""
        store = PinataContentStore(
            StorageConfig(pinata_jwt="t", gateway_url="https://ipfs.io/ipfs/")
        )
        assert store.gateway_url(CID) == f"https://ipfs.io/ipfs/{CID}"
