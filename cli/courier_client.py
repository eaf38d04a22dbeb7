"""HTTP client for communicating with the Courier service."""

import time
import uuid
from typing import Optional

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.constants import GREEN, RESET
from cli.utils import format_file_size

logger = get_logger(__name__)


class CourierClient:
    """HTTP client for Courier API with retry logic and error handling."""

    def __init__(self, config: Config, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize courier client.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (testing)
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized CourierClient [base_url={config.get_base_url()}]")

    def close(self) -> None:
        self.session.close()

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        if 'headers' not in kwargs:
            kwargs['headers'] = {}
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                )

        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. The server may still be sending the backup.")
        raise ConnectionError("Cannot connect to courier server. Is it running?")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        The server already sends a user-facing 'detail' for delivery errors;
        it is shown as-is. Other codes fall back to a status description.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        if code != 'UNKNOWN' and isinstance(detail, str):
            return detail

        status_messages = {
            400: 'Bad request',
            404: 'Not found',
            422: 'Invalid request',
            429: 'Cooldown active',
            500: 'Server error',
            502: 'Chat transport failed',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, str(detail))
        if isinstance(detail, str) and detail and detail != message:
            return f"{message}: {detail}"
        return message

    def publish_link(self, requester_id: str) -> str:
        """
        Publish the latest backup as a link.

        Args:
            requester_id: Identity the cooldown is charged to

        Returns:
            Link message or error message
        """
        logger.info(f"Requesting link delivery for requester {requester_id}")
        try:
            response = self._request_with_retry(
                'POST',
                '/backups/link',
                max_retries=0,
                json={'requester_id': requester_id},
            )
        except ConnectionError as e:
            logger.error(f"Connection error during link delivery: {e}")
            return f"Error: {e}"

        if response.status_code == 201:
            return response.json()['message']

        logger.warning(f"Link delivery failed status={response.status_code}")
        return f"Link delivery failed: {self._format_error(response)}"

    def send_chunks(self, requester_id: str, max_chunk_size: Optional[int] = None) -> str:
        """
        Send the latest backup to the chat transport in parts.

        Args:
            requester_id: Identity the cooldown is charged to
            max_chunk_size: Optional part size override in bytes

        Returns:
            Summary with part names and restore commands, or error message
        """
        logger.info(f"Requesting chunked delivery for requester {requester_id}")
        payload = {'requester_id': requester_id}
        if max_chunk_size is not None:
            payload['max_chunk_size'] = max_chunk_size

        try:
            response = self._request_with_retry(
                'POST',
                '/backups/chunks',
                max_retries=0,
                json=payload,
                timeout=self.config.get_delivery_timeout(),
            )
        except ConnectionError as e:
            logger.error(f"Connection error during chunked delivery: {e}")
            return f"Error: {e}"

        if response.status_code != 200:
            logger.warning(f"Chunked delivery failed status={response.status_code}")
            return f"Chunked delivery failed: {self._format_error(response)}"

        data = response.json()
        lines = [
            f"{GREEN}Sent {data['file_name']} ({format_file_size(data['file_size_bytes'])}) "
            f"in {data['chunk_count']} part(s){RESET}",
        ]
        lines.extend(f"  {name}" for name in data['part_names'])
        lines.append("")
        lines.append("Restore commands:")
        lines.append(data['restore_commands'])
        return "\n".join(lines)

    def latest_backup(self) -> str:
        """
        Describe the latest backup.

        Returns:
            Backup summary or error message
        """
        try:
            response = self._request_with_retry('GET', '/backups/latest')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        data = response.json()
        return (
            f"Latest backup: {data['file_name']}\n"
            f"  Size: {format_file_size(data['file_size_bytes'])}\n"
            f"  Modified: {data['modified_at']}\n"
            f"  Parts when sent to chat: {data['chunk_count']}"
        )

    def list_publications(self) -> str:
        """
        List live publications.

        Returns:
            Formatted publication table or error message
        """
        try:
            response = self._request_with_retry('GET', '/publications')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        publications = response.json()['publications']
        if not publications:
            return "No live publications"

        lines = [f"Found {len(publications)} publication(s):"]
        for p in publications:
            lines.append(
                f"  {p['token']}  {p['file_name']}  {format_file_size(p['file_size_bytes'])}  "
                f"created {p['created_at']}"
            )
            lines.append(f"    {p['url']}")
        return "\n".join(lines)

    def revoke(self, token: str) -> str:
        """
        Revoke a publication.

        Args:
            token: Publication token

        Returns:
            Success or error message
        """
        logger.info("Requesting revocation of a publication")
        try:
            response = self._request_with_retry('DELETE', f'/publications/{token}')
        except ConnectionError as e:
            return f"Error: {e}"

        if response.status_code == 200:
            return f"Revoked publication {token}"
        if response.status_code == 404:
            return f"No publication with token {token}"
        return f"Revoke failed: {self._format_error(response)}"
