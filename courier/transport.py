"""Chat transports that receive chunked backup deliveries."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from common.types import ChunkPayload
from courier.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass
class TransportResult:
    channel: str
    success: bool
    detail: Optional[str] = None


class ChunkTransport:
    """Interface for delivering text and chunk attachments to a chat."""

    def send_message(self, content: str) -> TransportResult:
        raise NotImplementedError()

    def send_chunk(self, payload: ChunkPayload, content: str = '') -> TransportResult:
        raise NotImplementedError()

    def close(self) -> None:
        pass


class WebhookChunkTransport(ChunkTransport):
    """
    Posts messages and part files to a chat webhook (Discord-compatible).

    Server errors, rate limits and network failures, including a connection
    dropped mid-upload, are retried with exponential backoff; anything else
    fails the send immediately.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff: float = 2.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize webhook transport.

        Args:
            webhook_url: Full webhook URL including its secret
            timeout: Per-request timeout in seconds
            max_retries: Retries after the first attempt
            backoff: Base of the exponential delay between attempts
            client: Optional preconfigured httpx client (testing)
        """
        if not webhook_url:
            raise ValueError("Webhook URL is empty")
        self.webhook_url = webhook_url
        self.max_retries = max_retries
        self.backoff = backoff
        self._client = client or httpx.Client(timeout=timeout)

    def send_message(self, content: str) -> TransportResult:
        return self._post(json={"content": content})

    def send_chunk(self, payload: ChunkPayload, content: str = '') -> TransportResult:
        files = {"files[0]": (payload.file_name, payload.data, "application/octet-stream")}
        data = {"payload_json": json.dumps({"content": content})}
        result = self._post(data=data, files=files)
        if result.success:
            logger.info(
                f"Sent part {payload.chunk.index}/{payload.chunk.total} "
                f"({payload.chunk.byte_length} bytes)"
            )
        return result

    def close(self) -> None:
        self._client.close()

    def _post(self, **kwargs) -> TransportResult:
        last_detail = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._client.post(self.webhook_url, **kwargs)
            except httpx.TransportError as e:
                last_detail = f"{type(e).__name__}: {e}"
            else:
                if response.status_code < 400:
                    return TransportResult(channel='webhook', success=True)
                last_detail = f"HTTP {response.status_code}: {response.text[:200]}"
                if response.status_code != 429 and response.status_code < 500:
                    logger.warning(f"Webhook rejected request: {last_detail}")
                    return TransportResult(channel='webhook', success=False, detail=last_detail)

            if attempt < self.max_retries:
                delay = self.backoff ** attempt
                logger.warning(
                    f"Webhook send failed (attempt {attempt + 1}/{self.max_retries + 1}): "
                    f"{last_detail}, retrying in {delay}s"
                )
                time.sleep(delay)

        logger.error(f"Webhook send failed after {self.max_retries + 1} attempts: {last_detail}")
        return TransportResult(channel='webhook', success=False, detail=last_detail)


def require_success(result: TransportResult, what: str) -> None:
    """
    Turn a failed TransportResult into a TransportError.
    """
    if not result.success:
        raise TransportError(f"Failed to send {what}: {result.detail}")
