"""Chunk artifacts and the manifest of one working directory on disk."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, List

from common.constants import CHUNK_EXTENSION, MANIFEST_FILENAME

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


class ChunkStore:
    """
    Flat identifier -> bytes namespace scoped to a single directory.

    A store holds the chunks of exactly one file at a time; callers give each
    split or assemble session its own directory.
    """

    def __init__(self, directory: Path, extension: str = CHUNK_EXTENSION):
        self.directory = Path(directory)
        self.extension = extension

    def __repr__(self) -> str:
        return f"ChunkStore({str(self.directory)!r})"

    @property
    def manifest_path(self) -> Path:
        return self.directory / MANIFEST_FILENAME

    def ensure_directory(self) -> None:
        """Ensure the store directory exists."""
        self.directory.mkdir(parents=True, exist_ok=True)

    def chunk_filename(self, chunk_id: str) -> str:
        return f"{chunk_id}.{self.extension}"

    def get_chunk_path(self, chunk_id: str) -> Path:
        """
        Get file path for a chunk.

        Args:
            chunk_id: Hex digest of the chunk

        Returns:
            Path object for chunk artifact
        """
        return self.directory / self.chunk_filename(chunk_id)

    @contextmanager
    def chunk_writer(self, chunk_id: str) -> Iterator[BinaryIO]:
        """
        Open a chunk artifact for writing.

        Bytes go to a temporary file that is renamed to the chunk's name only
        when the block exits cleanly, so a chunk name never refers to a
        partially written artifact.

        Raises:
            OSError: If the artifact cannot be created, written or renamed
        """
        self.ensure_directory()
        final_path = self.get_chunk_path(chunk_id)
        temp_path = final_path.with_name(final_path.name + PARTIAL_SUFFIX)

        f = open(temp_path, 'wb')
        try:
            with f:
                yield f
            os.replace(temp_path, final_path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    def write_chunk(self, chunk_id: str, data: bytes) -> Path:
        """
        Write chunk data to disk.

        Args:
            chunk_id: Hex digest of the chunk
            data: Raw chunk bytes

        Returns:
            Path of the written artifact

        Raises:
            OSError: If write operation fails
        """
        with self.chunk_writer(chunk_id) as f:
            f.write(data)
        return self.get_chunk_path(chunk_id)

    def open_chunk(self, chunk_id: str) -> BinaryIO:
        """
        Open a chunk artifact for reading.

        Raises:
            FileNotFoundError: If chunk does not exist
        """
        return open(self.get_chunk_path(chunk_id), 'rb')

    def delete_chunk(self, chunk_id: str) -> bool:
        """
        Delete chunk artifact from disk.

        Returns:
            True if file was deleted, False if it didn't exist

        Raises:
            OSError: If the artifact exists but cannot be removed
        """
        try:
            self.get_chunk_path(chunk_id).unlink()
        except FileNotFoundError:
            return False
        return True

    def chunk_exists(self, chunk_id: str) -> bool:
        return self.get_chunk_path(chunk_id).is_file()

    def list_chunks(self) -> List[str]:
        """
        List chunk IDs present in the store directory.

        Listing order carries no meaning; reassembly order comes from the
        manifest only.
        """
        if not self.directory.exists():
            return []
        return [path.stem for path in self.directory.glob(f"*.{self.extension}")]

    def open_manifest_writer(self) -> BinaryIO:
        """Create (or truncate) the manifest artifact of this store."""
        self.ensure_directory()
        return open(self.manifest_path, 'wb')
