"""HTTP client for a knowledge-asset edge node.

Contract:
  POST {endpoint}/publish  {"content": {<visibility>: <asset>}, "blockchain": ..., "epochsNum": ..., ...}
                           -> {"UAL": "...", "blockNumber": n,
                               "operation": {"publish": {"errorType": ..., "errorMessage": ...},
                                             "mintKnowledgeCollection": {"transactionHash": ...}}}
  GET  {endpoint}/get?ual=<asset id>  -> {"assertion": ..., "metadata": ...}  (404 when unknown)
  GET  {endpoint}/info                -> 200 when the node is up
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.config import WorkflowSettings, get_config
from ..core.exceptions import LedgerPublishError
from ..workflow.models import PublishReceipt

logger = logging.getLogger(__name__)


class HttpLedgerPublisher:
    """``LedgerPublisher`` talking to an edge node over HTTP."""

    def __init__(
        self,
        endpoint: str,
        blockchain: str = "otp:20430",
        epochs: int = 3,
        min_confirmations: int = 1,
        min_replications: int = 1,
        timeout: float | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.blockchain = blockchain
        self.epochs = epochs
        self.min_confirmations = min_confirmations
        self.min_replications = min_replications
        self.timeout = timeout
        self.token = token
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: WorkflowSettings | None = None, **kwargs: Any) -> HttpLedgerPublisher:
        settings = settings or get_config()
        return cls(
            endpoint=settings.ledger_endpoint,
            blockchain=settings.ledger_blockchain,
            epochs=settings.ledger_epochs,
            min_confirmations=settings.ledger_min_confirmations,
            min_replications=settings.ledger_min_replications,
            timeout=settings.ledger_request_timeout_s,
            **kwargs,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.endpoint,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        )

    async def publish(self, asset: dict[str, Any], visibility: str) -> PublishReceipt:
        """Publish ``asset`` wrapped under its visibility key.

        Raises:
            LedgerPublishError: On transport failure, a node-reported error,
                or a response without an asset id
        """
        payload = {
            "content": {visibility: asset},
            "blockchain": self.blockchain,
            "epochsNum": self.epochs,
            "minimumNumberOfFinalizationConfirmations": self.min_confirmations,
            "minimumNumberOfNodeReplications": self.min_replications,
        }
        logger.info(f"Publishing knowledge asset {asset.get('@id')} ({visibility}) to {self.endpoint}")

        try:
            async with self._client() as client:
                response = await client.post("/publish", json=payload)
        except httpx.HTTPError as e:
            raise LedgerPublishError(f"Ledger publishing failed: {e}") from e

        if response.status_code >= 400:
            raise LedgerPublishError(
                f"Ledger publishing failed: HTTP {response.status_code}: {response.text[:500]}"
            )

        data = response.json()
        operation = data.get("operation") or {}
        publish_op = operation.get("publish") or {}
        if publish_op.get("errorType") or publish_op.get("errorMessage"):
            error_type = publish_op.get("errorType")
            raise LedgerPublishError(
                f"Ledger API Error: {error_type} - {publish_op.get('errorMessage')}",
                error_type=error_type,
            )

        asset_id = data.get("UAL")
        if not asset_id:
            raise LedgerPublishError("Ledger returned success but no asset id was provided")

        mint_op = operation.get("mintKnowledgeCollection") or {}
        receipt = PublishReceipt(
            asset_id=asset_id,
            tx_hash=mint_op.get("transactionHash"),
            block_number=data.get("blockNumber"),
        )
        logger.info(f"Knowledge asset published: {asset_id}")
        return receipt

    async def get(self, asset_id: str) -> dict[str, Any] | None:
        """Fetch a published asset, or None when the node does not know it."""
        try:
            async with self._client() as client:
                response = await client.get("/get", params={"ual": asset_id})
        except httpx.HTTPError as e:
            logger.error(f"Ledger retrieval failed for {asset_id}: {e}")
            return None

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.error(f"Ledger retrieval failed for {asset_id}: HTTP {response.status_code}")
            return None

        data = response.json()
        metadata = data.get("metadata") or {}
        return {
            "asset_id": asset_id,
            "content": data.get("assertion", data),
            "metadata": metadata,
            "timestamp": metadata.get("timestamp"),
        }

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/info")
        except httpx.HTTPError as e:
            logger.warning(f"Ledger node {self.endpoint} unreachable: {e}")
            return False
        return response.status_code == 200
