"""Delivery service: publishes backups as links or streams them as chunks."""

import logging
import weakref
from dataclasses import dataclass
from typing import Hashable, Iterator, List, Optional

from common.types import BackupFile, ChunkPayload, Publication
from courier import chunker, messages, publisher
from courier.config import CourierSettings
from courier.exceptions import EmptyBackupError
from courier.locator import locate_latest
from courier.rate_limiter import Admission, RateLimiter
from courier.transport import ChunkTransport, require_success

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkDelivery:
    """Result of a successful link publication."""
    url: str
    file_name: str
    file_size_bytes: int
    token: str


@dataclass(frozen=True)
class BackupPreview:
    """What a chunked delivery of the latest backup would look like."""
    backup: BackupFile
    chunk_count: int


class ChunkedDelivery:
    """
    One chunked delivery of a backup, consumed by iterating it once.

    Each chunk is read from disk only when the consumer asks for it, so at
    most one chunk is held in memory. The cooldown is committed when the
    consumer comes back after the last chunk; stopping early, or an error
    while reading, releases the admission instead. There is no resume: a
    failed delivery starts over from the first chunk.
    """

    def __init__(
        self,
        backup: BackupFile,
        max_chunk_size: int,
        admission: Admission,
        rate_limiter: RateLimiter,
    ):
        self.backup = backup
        self.max_chunk_size = max_chunk_size
        self.total = chunker.chunk_count(backup.size, max_chunk_size)
        self._admission = admission
        self._rate_limiter = rate_limiter
        self._started = False
        self._settled = False
        self._finalizer = weakref.finalize(self, rate_limiter.release, admission)

    @property
    def file_name(self) -> str:
        return self.backup.name

    @property
    def file_size_bytes(self) -> int:
        return self.backup.size

    @property
    def restore_commands(self) -> str:
        return messages.restore_commands(self.backup.name)

    def part_names(self) -> List[str]:
        return [
            chunker.part_file_name(self.backup.name, chunk)
            for chunk in chunker.plan_chunks(self.backup.size, self.max_chunk_size)
        ]

    def __iter__(self) -> Iterator[ChunkPayload]:
        if self._started:
            raise RuntimeError("Chunked delivery can only be consumed once")
        self._started = True
        return self._stream()

    def _stream(self) -> Iterator[ChunkPayload]:
        completed = False
        try:
            for chunk in chunker.plan_chunks(self.backup.size, self.max_chunk_size):
                data = chunker.read_chunk_bytes(self.backup.path, chunk)
                yield ChunkPayload(
                    chunk=chunk,
                    file_name=chunker.part_file_name(self.backup.name, chunk),
                    data=data,
                )
            completed = True
        finally:
            if completed:
                self._commit()
            else:
                self.abort()

    def abort(self) -> None:
        """Give the admission back without recording a delivery."""
        if not self._settled:
            self._settled = True
            self._finalizer.detach()
            self._rate_limiter.release(self._admission)
            logger.info(f"Chunked delivery of {self.backup.name} aborted")

    def _commit(self) -> None:
        if not self._settled:
            self._settled = True
            self._finalizer.detach()
            self._rate_limiter.commit(self._admission)
            logger.info(f"Chunked delivery of {self.backup.name} completed ({self.total} parts)")

    def __enter__(self) -> 'ChunkedDelivery':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.abort()


class DeliveryService:
    """
    Composes locator, rate limiter, publisher and chunker.

    Safe to call from several threads at once: the rate limiter is the only
    shared mutable state and guards itself.
    """

    def __init__(self, settings: CourierSettings, rate_limiter: Optional[RateLimiter] = None):
        """
        Initialize delivery service.

        Args:
            settings: Resolved courier settings
            rate_limiter: Cooldown state owned for the process lifetime;
                built from settings when omitted
        """
        self.settings = settings
        self.rate_limiter = rate_limiter or RateLimiter(
            user_cooldown=settings.user_cooldown,
            global_cooldown=settings.global_cooldown,
        )

    def publish_link(self, requester_id: Hashable) -> LinkDelivery:
        """
        Publish the latest backup under a fresh token link.

        The cooldown is committed only after the publication succeeded.

        Raises:
            BackupNotFoundError, EmptyBackupError, CooldownActiveError,
            TokenSpaceExhaustedError, SourceVanishedError, PublishError
        """
        backup = locate_latest(self.settings.backup_folder)
        if backup.size == 0:
            raise EmptyBackupError(f"Backup {backup.name} is empty")

        with self.rate_limiter.admitted(requester_id):
            publication = publisher.publish(
                backup,
                self.settings.publish_root,
                self.settings.public_base_url,
            )

        logger.info(f"Link delivery of {backup.name} for requester {requester_id} succeeded")
        return LinkDelivery(
            url=publication.url,
            file_name=publication.file_name,
            file_size_bytes=publication.file_size,
            token=publication.token,
        )

    def send_chunked(self, requester_id: Hashable, max_chunk_size: Optional[int] = None) -> ChunkedDelivery:
        """
        Prepare a chunked delivery of the latest backup.

        Use the result as a context manager so an unconsumed delivery gives
        its admission back.

        Raises:
            BackupNotFoundError, CooldownActiveError, EmptyBackupError
        """
        if max_chunk_size is None:
            max_chunk_size = self.settings.max_chunk_bytes

        backup = locate_latest(self.settings.backup_folder)
        admission = self.rate_limiter.try_admit(requester_id)
        try:
            delivery = ChunkedDelivery(backup, max_chunk_size, admission, self.rate_limiter)
        except Exception:
            self.rate_limiter.release(admission)
            raise

        logger.info(
            f"Prepared chunked delivery of {backup.name} for requester {requester_id} "
            f"({delivery.total} parts of at most {max_chunk_size} bytes)"
        )
        return delivery

    def deliver_chunked(
        self,
        requester_id: Hashable,
        transport: ChunkTransport,
        max_chunk_size: Optional[int] = None,
    ) -> ChunkedDelivery:
        """
        Send the latest backup through a chat transport, part by part.

        Sends a header, every part in ascending order, then the restore
        recipe. The next part is read only after the previous one was sent.
        The cooldown is committed only once the restore recipe went out too,
        so any failed send leaves the requester free to start over.

        Raises:
            TransportError: If the transport rejects any message or part
        """
        with self.send_chunked(requester_id, max_chunk_size) as delivery:
            require_success(
                transport.send_message(messages.chunked_header_message(
                    delivery.file_name, delivery.file_size_bytes, delivery.total,
                )),
                "delivery header",
            )
            for payload in delivery:
                caption = messages.chunk_caption(payload.file_name, payload.chunk.index, payload.chunk.total)
                require_success(transport.send_chunk(payload, caption), f"part {payload.chunk.index}")
                if payload.chunk.is_last:
                    require_success(
                        transport.send_message(messages.restore_message(delivery.file_name)),
                        "restore steps",
                    )

        return delivery

    def preview_latest(self) -> BackupPreview:
        """
        Describe the latest backup without touching any cooldown.

        Raises:
            BackupNotFoundError, EmptyBackupError
        """
        backup = locate_latest(self.settings.backup_folder)
        return BackupPreview(
            backup=backup,
            chunk_count=chunker.chunk_count(backup.size, self.settings.max_chunk_bytes),
        )

    def list_publications(self) -> List[Publication]:
        return publisher.list_publications(self.settings.publish_root, self.settings.public_base_url)

    def revoke(self, token: str) -> bool:
        return publisher.revoke(self.settings.publish_root, token)
