"""Upload, download and publish API routes.

Handlers are plain ``def`` functions: splitting and reassembly are blocking,
so FastAPI runs each request in its worker thread pool.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import FileResponse

from common.constants import MANIFEST_FILENAME
from common.exceptions import InvalidRequestError
from relay.schemas.common import ErrorResponse
from relay.schemas.transfer import DownloadResponse, UploadResponse
from relay.services.transfer_service import TransferService

router = APIRouter(tags=["Transfer"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_transfer_service(request: Request) -> TransferService:
    return TransferService(
        settings=request.app.state.settings,
        http_client=request.app.state.http_client,
    )


@router.post("/upload", response_model=UploadResponse, responses=ERROR_RESPONSES)
def upload_file(
    file: Optional[UploadFile] = File(None),
    service: TransferService = Depends(get_transfer_service),
):
    """
    Split an uploaded file into content-addressed chunks and publish its manifest.

    Parameters:
        - file: File to upload (multipart/form-data field ``file``)

    Returns:
        - session_id: Publish session holding links.txt and the chunks
        - base_path: Path other relays pass as ``url`` to /download

    Raises:
        - 400: Missing ``file`` field or filename
        - 500: Input read or storage failure
    """
    if file is None or not file.filename:
        raise InvalidRequestError("Missing required upload field 'file'")

    session, result = service.publish_upload(file.file, file.filename)

    return UploadResponse(
        session_id=session.session_id,
        file_name=result.file_name,
        chunk_count=len(result.chunks),
        size=result.size,
        base_path=f"/published/{session.session_id}",
    )


@router.get("/download", response_model=DownloadResponse, responses=ERROR_RESPONSES)
def download_file(
    url: Optional[str] = Query(None, description="Base location of links.txt and the chunks"),
    service: TransferService = Depends(get_transfer_service),
):
    """
    Fetch a manifest from ``url`` and reconstruct the file locally.

    Raises:
        - 400: Missing ``url`` parameter
        - 500: Manifest fetch/format, chunk download or storage failure
    """
    if not url:
        raise InvalidRequestError("Missing required parameters")

    result = service.download(url)

    return DownloadResponse(
        file_name=result.file_name,
        chunk_count=result.chunk_count,
        size=result.size,
    )


@router.get(
    "/published/{session_id}/{artifact}",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_published_artifact(
    session_id: str,
    artifact: str,
    service: TransferService = Depends(get_transfer_service),
):
    """
    Serve the manifest or a chunk of a publish session.

    Raises:
        - 400: Malformed session id or artifact name
        - 404: Unknown session or artifact
    """
    path = service.locate_artifact(session_id, artifact)
    media_type = "text/plain; charset=utf-8" if artifact == MANIFEST_FILENAME else "application/octet-stream"
    return FileResponse(path, media_type=media_type)
