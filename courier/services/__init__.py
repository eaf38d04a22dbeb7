"""Service layer for backup delivery."""

from courier.services.delivery_service import (
    BackupPreview,
    ChunkedDelivery,
    DeliveryService,
    LinkDelivery,
)

__all__ = [
    "BackupPreview",
    "ChunkedDelivery",
    "DeliveryService",
    "LinkDelivery",
]
