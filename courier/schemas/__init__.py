"""Pydantic schemas for API requests and responses."""

from courier.schemas.backups import (
    DeliveryRequest,
    ChunkedDeliveryRequest,
    LinkResponse,
    ChunkedResponse,
    LatestBackupResponse,
)
from courier.schemas.publications import (
    PublicationResponse,
    ListPublicationsResponse,
    RevokeResponse,
)
from courier.schemas.common import ErrorResponse

__all__ = [
    "DeliveryRequest",
    "ChunkedDeliveryRequest",
    "LinkResponse",
    "ChunkedResponse",
    "LatestBackupResponse",
    "PublicationResponse",
    "ListPublicationsResponse",
    "RevokeResponse",
    "ErrorResponse",
]
