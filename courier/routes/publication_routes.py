"""Publication management API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from courier.dependencies import get_delivery_service
from courier.schemas.common import ErrorResponse
from courier.schemas.publications import (
    ListPublicationsResponse,
    PublicationResponse,
    RevokeResponse,
)
from courier.services.delivery_service import DeliveryService

router = APIRouter(prefix="/publications", tags=["Publications"])


@router.get("", response_model=ListPublicationsResponse)
def list_publications(service: DeliveryService = Depends(get_delivery_service)):
    """List live publications, newest first."""
    return ListPublicationsResponse(
        publications=[
            PublicationResponse(
                token=p.token,
                file_name=p.file_name,
                file_size_bytes=p.file_size,
                url=p.url,
                created_at=p.created_at.isoformat(),
            )
            for p in service.list_publications()
        ]
    )


@router.delete("/{token}", response_model=RevokeResponse, responses={400: {"model": ErrorResponse}})
def revoke_publication(token: str, service: DeliveryService = Depends(get_delivery_service)):
    """
    Revoke a publication by deleting its token directory.

    Raises:
        - 400: Not a publication token
        - 404: Unknown token
    """
    if not service.revoke(token):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Publication not found")
    return RevokeResponse(token=token, revoked=True)
