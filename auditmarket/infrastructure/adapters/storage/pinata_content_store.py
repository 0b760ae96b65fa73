"""Pinata/IPFS content store adapter.

Publishes canonical evidence bytes through Pinata's pinJSONToIPFS endpoint
and reads documents back through the public gateway. The pinned body is
the exact canonical JSON the packager rendered, so the returned CID is
stable for identical documents.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from auditmarket.config.marketplace_config import StorageConfig
from auditmarket.domain.errors import ExternalServiceError

log = structlog.get_logger()

SERVICE = "content_store"


class PinataContentStore:
    """ContentStoreProtocol implementation backed by Pinata.

    Args:
        config: Storage configuration (JWT, API and gateway URLs).
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        config: StorageConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.pinata_jwt:
            raise ValueError("PINATA_JWT is required for the Pinata content store")
        self._config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout_seconds,
        )

    async def put(self, payload: bytes, name: str) -> str:
        try:
            content = json.loads(payload)
        except ValueError as exc:
            raise ExternalServiceError(
                step="put", service=SERVICE, reason=f"payload is not JSON: {exc}"
            ) from exc

        body = {"pinataContent": content, "pinataMetadata": {"name": name}}
        url = f"{self._config.api_url.rstrip('/')}/pinning/pinJSONToIPFS"
        async with self._client() as client:
            try:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Authorization": f"Bearer {self._config.pinata_jwt}"},
                )
                response.raise_for_status()
                cid = response.json()["IpfsHash"]
            except httpx.HTTPStatusError as exc:
                log.warning(
                    "pinata_put_rejected",
                    status_code=exc.response.status_code,
                    name=name,
                )
                raise ExternalServiceError(
                    step="put",
                    service=SERVICE,
                    reason=f"HTTP {exc.response.status_code}",
                ) from exc
            except (httpx.HTTPError, KeyError, ValueError) as exc:
                log.warning("pinata_put_failed", error=str(exc), name=name)
                raise ExternalServiceError(
                    step="put", service=SERVICE, reason=str(exc) or type(exc).__name__
                ) from exc

        log.info("evidence_pinned", cid=cid, name=name, size=len(payload))
        return cid

    async def get(self, cid: str) -> dict[str, Any]:
        async with self._client() as client:
            try:
                response = await client.get(self.gateway_url(cid))
                response.raise_for_status()
                document = response.json()
            except httpx.HTTPStatusError as exc:
                raise ExternalServiceError(
                    step="get",
                    service=SERVICE,
                    reason=f"HTTP {exc.response.status_code} for {cid}",
                ) from exc
            except (httpx.HTTPError, ValueError) as exc:
                raise ExternalServiceError(
                    step="get", service=SERVICE, reason=str(exc) or type(exc).__name__
                ) from exc

        if not isinstance(document, dict):
            raise ExternalServiceError(
                step="get", service=SERVICE, reason=f"{cid} is not a JSON object"
            )
        return document

    def gateway_url(self, cid: str) -> str:
        return f"{self._config.gateway_url.rstrip('/')}/{cid}"
