"""Pydantic schemas for request/response validation."""

from relay.schemas.common import ErrorResponse
from relay.schemas.transfer import DownloadResponse, UploadResponse

__all__ = ["ErrorResponse", "DownloadResponse", "UploadResponse"]
