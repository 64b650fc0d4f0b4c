"""Splits an inbound byte stream into content-addressed chunks plus a manifest."""

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional

from chunkstore.checksum import compute_digest
from chunkstore.chunk_storage import ChunkStore
from common.constants import CHUNK_SIZE_BYTES, DIGEST_ALGORITHM
from common.exceptions import InputReadError, StorageError
from common.manifest import ManifestWriter, is_valid_line
from common.types import ChunkDescriptor, SplitResult

logger = logging.getLogger(__name__)


def read_chunk(stream: BinaryIO, chunk_size: int) -> bytes:
    """
    Read up to ``chunk_size`` bytes, retrying short reads until EOF.

    Chunk boundaries therefore depend only on the content, never on how the
    underlying stream happens to deliver it.
    """
    buffer = bytearray()
    while len(buffer) < chunk_size:
        piece = stream.read(chunk_size - len(buffer))
        if not piece:
            break
        buffer += piece
    return bytes(buffer)


def split_stream(
    stream: BinaryIO,
    file_name: str,
    store: ChunkStore,
    chunk_size: int = CHUNK_SIZE_BYTES,
    algorithm: str = DIGEST_ALGORITHM,
) -> SplitResult:
    """
    Split ``stream`` into chunks persisted in ``store`` and write its manifest.

    The manifest (``links.txt``) starts with ``file_name`` and lists one hex
    digest per chunk in read order. An empty stream yields a header-only
    manifest. Any existing manifest in the store is overwritten.

    Args:
        stream: Readable binary stream of unbounded length
        file_name: Original file name recorded as the manifest header
        store: Chunk store receiving the chunk artifacts and the manifest
        chunk_size: Maximum chunk size in bytes
        algorithm: Digest algorithm used for content addressing

    Returns:
        SplitResult with the ordered chunk descriptors

    Raises:
        InputReadError: If the input stream cannot be read
        StorageError: If a chunk artifact or the manifest cannot be written
        ValueError: If chunk_size is not positive or file_name is empty or
            contains a line break
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if not file_name or not is_valid_line(file_name):
        raise ValueError(f"file name must be a non-empty single line, got {file_name!r}")

    try:
        manifest_file = store.open_manifest_writer()
    except OSError as e:
        raise StorageError(f"failed to create manifest in {store.directory}: {e}") from e

    chunks: List[ChunkDescriptor] = []

    with manifest_file:
        try:
            manifest = ManifestWriter(manifest_file, file_name)
        except OSError as e:
            raise StorageError(f"failed to write file name to manifest: {e}") from e

        while True:
            position = len(chunks) + 1
            try:
                data = read_chunk(stream, chunk_size)
            except (OSError, ValueError) as e:
                raise InputReadError(f"failed to read input for chunk {position}: {e}") from e

            if not data:
                break

            chunk_id = compute_digest(data, algorithm)

            try:
                store.write_chunk(chunk_id, data)
            except OSError as e:
                raise StorageError(f"failed to write chunk {chunk_id} at position {position}: {e}") from e

            try:
                manifest.append(chunk_id)
            except OSError as e:
                raise StorageError(f"failed to record chunk {chunk_id} at position {position} in manifest: {e}") from e

            chunks.append(ChunkDescriptor(chunk_id=chunk_id, chunk_index=len(chunks), size=len(data)))
            logger.debug(f"Stored chunk {position} ({len(data)} bytes): {chunk_id}")

    result = SplitResult(file_name=file_name, chunks=chunks)
    logger.info(f"Split {file_name!r} into {len(chunks)} chunks ({result.size} bytes) in {store.directory}")
    return result


def split_file(
    path: Path,
    store: ChunkStore,
    chunk_size: int = CHUNK_SIZE_BYTES,
    file_name: Optional[str] = None,
) -> SplitResult:
    """
    Split a local file; the manifest header defaults to the file's base name.

    Raises:
        InputReadError: If the file cannot be opened or read
        StorageError: If the store cannot be written
    """
    path = Path(path)
    try:
        source = open(path, 'rb')
    except OSError as e:
        raise InputReadError(f"failed to open {path}: {e}") from e

    with source:
        return split_stream(source, file_name or path.name, store, chunk_size)
