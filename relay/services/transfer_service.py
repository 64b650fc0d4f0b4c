"""Transfer service: publishes uploads and reconstructs remote files."""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

import httpx

from chunkstore.assembler import Assembler
from chunkstore.checksum import is_valid_chunk_id
from chunkstore.chunk_source import HttpChunkSource
from chunkstore.splitter import split_stream
from common.constants import MANIFEST_FILENAME
from common.exceptions import ArtifactNotFoundError, InvalidRequestError
from common.manifest import is_valid_line
from common.types import AssembleResult, SplitResult
from relay.config import DOWNLOAD_SESSION_KIND, UPLOAD_SESSION_KIND, RelaySettings
from relay.session import TransferSession, find_session, open_session

logger = logging.getLogger(__name__)


class TransferService:
    def __init__(self, settings: RelaySettings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self.http_client = http_client

    def publish_upload(self, stream: BinaryIO, file_name: str) -> Tuple[TransferSession, SplitResult]:
        """
        Split an uploaded stream into a new publish session.

        The session directory keeps the manifest and chunks so other relays can
        fetch them; on failure the half-written session is discarded.

        Raises:
            InvalidRequestError: If the file name cannot be recorded in a manifest
        """
        if not file_name or not is_valid_line(file_name):
            raise InvalidRequestError(f"Invalid file name: {file_name!r}")

        session = open_session(self.settings.storage_root, UPLOAD_SESSION_KIND)
        try:
            result = split_stream(stream, file_name, session.store, self.settings.chunk_size)
        except Exception:
            logger.error(f"Upload of {file_name!r} failed, discarding session {session.session_id}")
            session.discard()
            raise

        logger.info(
            f"Published {file_name!r} as session {session.session_id} "
            f"({len(result.chunks)} chunks, {result.size} bytes)"
        )
        return session, result

    def download(self, base_url: str) -> AssembleResult:
        """
        Fetch the manifest published at ``base_url`` and rebuild the file locally.

        The scratch session is removed whether the download succeeds or fails.
        """
        session = open_session(self.settings.storage_root, DOWNLOAD_SESSION_KIND)
        source = HttpChunkSource(base_url, client=self.http_client, timeout=self.settings.fetch_timeout)
        try:
            with source:
                assembler = Assembler(
                    source,
                    session.store,
                    self.settings.download_dir,
                    verify=self.settings.verify_chunks,
                )
                result = assembler.run()
        except Exception:
            logger.error(f"Download from {base_url} failed, discarding scratch session {session.session_id}")
            raise
        finally:
            session.discard()

        return result

    def locate_artifact(self, session_id: str, artifact: str) -> Path:
        """
        Resolve a published artifact (``links.txt`` or ``<digest>.<ext>``) to a path.

        Raises:
            InvalidRequestError: If the artifact name is malformed
            ArtifactNotFoundError: If the session or artifact does not exist
        """
        session = find_session(self.settings.storage_root, UPLOAD_SESSION_KIND, session_id)
        store = session.store

        if artifact == MANIFEST_FILENAME:
            path = store.manifest_path
        else:
            chunk_id, _, extension = artifact.partition(".")
            if extension != store.extension or not is_valid_chunk_id(chunk_id):
                raise InvalidRequestError(f"Invalid artifact name: {artifact!r}")
            path = store.get_chunk_path(chunk_id)

        if not path.is_file():
            raise ArtifactNotFoundError(f"Artifact {artifact} not found in session {session_id}")
        return path
