"""FastAPI dependencies resolving the per-app service handles."""

from typing import Optional

from fastapi import Request

from courier.services.delivery_service import DeliveryService
from courier.transport import ChunkTransport


def get_delivery_service(request: Request) -> DeliveryService:
    """Delivery service created with the app; owns the cooldown state."""
    return request.app.state.delivery_service


def get_chunk_transport(request: Request) -> Optional[ChunkTransport]:
    """Configured chat transport, or None when no webhook is set up."""
    return request.app.state.chunk_transport
