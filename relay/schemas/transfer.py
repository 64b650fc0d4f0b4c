"""Pydantic schemas for transfer endpoints."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Response model for a split upload."""
    status: bool = True
    session_id: str
    file_name: str
    chunk_count: int
    size: int
    base_path: str


class DownloadResponse(BaseModel):
    """Response model for a completed reassembly."""
    status: bool = True
    file_name: str
    chunk_count: int
    size: int
