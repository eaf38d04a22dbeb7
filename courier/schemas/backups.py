"""Pydantic schemas for backup delivery endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field


class DeliveryRequest(BaseModel):
    """Request model naming who asked for the backup."""
    requester_id: str = Field(..., min_length=1, max_length=128)


class ChunkedDeliveryRequest(DeliveryRequest):
    """Request model for chunked delivery."""
    max_chunk_size: Optional[int] = Field(default=None, gt=0)


class LinkResponse(BaseModel):
    """Response model for a published download link."""
    url: str
    file_name: str
    file_size_bytes: int
    message: str


class ChunkedResponse(BaseModel):
    """Response model for a completed chunked delivery."""
    file_name: str
    file_size_bytes: int
    chunk_count: int
    part_names: List[str]
    restore_commands: str
    message: str


class LatestBackupResponse(BaseModel):
    """Response model for the latest backup preview."""
    file_name: str
    file_size_bytes: int
    modified_at: str
    chunk_count: int
