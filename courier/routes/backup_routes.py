"""Backup delivery API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from courier import messages
from courier.dependencies import get_chunk_transport, get_delivery_service
from courier.schemas.backups import (
    ChunkedDeliveryRequest,
    ChunkedResponse,
    DeliveryRequest,
    LatestBackupResponse,
    LinkResponse,
)
from courier.schemas.common import ErrorResponse
from courier.services.delivery_service import DeliveryService
from courier.transport import ChunkTransport

router = APIRouter(prefix="/backups", tags=["Backups"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("/link", response_model=LinkResponse, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
def publish_link(
    request: DeliveryRequest,
    service: DeliveryService = Depends(get_delivery_service),
):
    """
    Publish the latest backup under a fresh token URL.

    Raises:
        - 404: No backup found
        - 409: Backup changed during publish
        - 429: Cooldown active (Retry-After header set)
        - 500: Publish failed
    """
    delivery = service.publish_link(request.requester_id)
    return LinkResponse(
        url=delivery.url,
        file_name=delivery.file_name,
        file_size_bytes=delivery.file_size_bytes,
        message=messages.link_ready_message(delivery.file_name, delivery.file_size_bytes, delivery.url),
    )


@router.post("/chunks", response_model=ChunkedResponse, responses=ERROR_RESPONSES)
def send_chunks(
    request: ChunkedDeliveryRequest,
    service: DeliveryService = Depends(get_delivery_service),
    transport: Optional[ChunkTransport] = Depends(get_chunk_transport),
):
    """
    Push the latest backup to the chat transport as ordered parts.

    Raises:
        - 404: No backup found
        - 422: Backup is empty
        - 429: Cooldown active
        - 502: Chat transport failed partway (restart from the first part)
        - 503: No chat transport configured
    """
    if transport is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No chat transport configured",
        )

    delivery = service.deliver_chunked(request.requester_id, transport, request.max_chunk_size)
    return ChunkedResponse(
        file_name=delivery.file_name,
        file_size_bytes=delivery.file_size_bytes,
        chunk_count=delivery.total,
        part_names=delivery.part_names(),
        restore_commands=delivery.restore_commands,
        message=messages.chunked_header_message(delivery.file_name, delivery.file_size_bytes, delivery.total),
    )


@router.get("/latest", response_model=LatestBackupResponse, responses=ERROR_RESPONSES)
def latest_backup(service: DeliveryService = Depends(get_delivery_service)):
    """
    Describe the latest backup without using any cooldown.
    """
    preview = service.preview_latest()
    return LatestBackupResponse(
        file_name=preview.backup.name,
        file_size_bytes=preview.backup.size,
        modified_at=preview.backup.modified_at.isoformat(),
        chunk_count=preview.chunk_count,
    )
