"""Pydantic schemas for publication management endpoints."""

from typing import List
from pydantic import BaseModel


class PublicationResponse(BaseModel):
    """Response model for one live publication."""
    token: str
    file_name: str
    file_size_bytes: int
    url: str
    created_at: str


class ListPublicationsResponse(BaseModel):
    """Response model for publication listing."""
    publications: List[PublicationResponse]


class RevokeResponse(BaseModel):
    """Response model for revocation."""
    token: str
    revoked: bool
