"""Reconstructs a file from its manifest and independently fetched chunks.

Reassembly walks the manifest's identifier sequence and re-opens each scratch
artifact by identifier. Scratch artifacts are named by digest, and digests do
not sort into upload order, so the scratch directory listing is never used to
decide the order. An identifier that appears several times is simply read
once per occurrence.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List

from chunkstore.checksum import IncrementalDigest, is_valid_chunk_id
from chunkstore.chunk_source import ChunkSource, SourceError
from chunkstore.chunk_storage import ChunkStore, PARTIAL_SUFFIX
from common.constants import COPY_BUFFER_BYTES, DIGEST_ALGORITHM
from common.exceptions import (
    ChunkDownloadError,
    ManifestFetchError,
    StorageError,
)
from common.manifest import decode_manifest_bytes
from common.types import AssembleResult, Manifest

logger = logging.getLogger(__name__)


def output_name(file_name: str) -> str:
    """
    Reduce a manifest file name to a bare file name inside the output directory.

    Raises:
        StorageError: If nothing usable remains (e.g. '', '.', '..')
    """
    name = Path(file_name.replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise StorageError(f"manifest declares an unusable file name: {file_name!r}")
    return name


class Assembler:
    """
    One reassembly session.

    Args:
        source: Where the manifest and chunks are fetched from
        scratch: Local store the chunks are downloaded into
        output_dir: Directory receiving the reconstructed file
        verify: Re-hash each downloaded chunk and compare with its identifier
        algorithm: Digest algorithm of the identifiers
    """

    def __init__(
        self,
        source: ChunkSource,
        scratch: ChunkStore,
        output_dir: Path,
        verify: bool = True,
        algorithm: str = DIGEST_ALGORITHM,
    ):
        self.source = source
        self.scratch = scratch
        self.output_dir = Path(output_dir)
        self.verify = verify
        self.algorithm = algorithm

    def run(self) -> AssembleResult:
        manifest = self.fetch_manifest()
        self.download_chunks(manifest)
        result = self.merge(manifest)
        self.cleanup(manifest)
        logger.info(f"File {result.file_name} successfully downloaded and merged into {result.output_path}")
        return result

    def fetch_manifest(self) -> Manifest:
        """
        Retrieve and decode the manifest.

        Raises:
            ManifestFetchError: If the manifest cannot be fetched
            ManifestFormatError: If it cannot be decoded
        """
        try:
            data = self.source.fetch_manifest()
        except SourceError as e:
            raise ManifestFetchError(f"failed to get manifest from {self.source.base_url}: {e}") from e

        manifest = decode_manifest_bytes(data)
        logger.info(f"Fetched manifest for {manifest.file_name!r}: {manifest.chunk_count} chunks")
        return manifest

    def download_chunks(self, manifest: Manifest) -> None:
        """
        Fetch every chunk, in manifest order, into the scratch store.

        Raises:
            ChunkDownloadError: On the first chunk that cannot be fetched,
                persisted or verified; names its identifier and position
        """
        total = manifest.chunk_count
        try:
            self.scratch.ensure_directory()
        except OSError as e:
            raise StorageError(f"failed to create scratch directory {self.scratch.directory}: {e}") from e

        for position, chunk_id in enumerate(manifest.chunk_ids, start=1):
            if not is_valid_chunk_id(chunk_id, self.algorithm):
                raise ChunkDownloadError(chunk_id, position, "invalid chunk reference", total=total)

            self.download_chunk(chunk_id, position, total)
            logger.info(f"Downloaded chunk {position}/{total}: {chunk_id}")

    def download_chunk(self, chunk_id: str, position: int, total: int) -> None:
        digest = IncrementalDigest(self.algorithm)
        try:
            with self.source.stream_chunk(chunk_id) as pieces:
                with self.scratch.chunk_writer(chunk_id) as f:
                    for piece in pieces:
                        digest.update(piece)
                        f.write(piece)
                    if self.verify and not digest.verify(chunk_id):
                        raise ChunkDownloadError(
                            chunk_id, position,
                            f"content digest mismatch ({digest.size} bytes received)",
                            total=total,
                        )
        except SourceError as e:
            raise ChunkDownloadError(chunk_id, position, str(e), total=total) from e
        except OSError as e:
            raise ChunkDownloadError(chunk_id, position, f"failed to save chunk: {e}", total=total) from e

    def merge(self, manifest: Manifest) -> AssembleResult:
        """
        Concatenate scratch chunks in manifest order into the output file.

        The output is written to a uniquely named ``<name>.<random>.part``
        file and renamed to ``<name>`` only after the last chunk has been
        copied. Sessions sharing an output directory and a file name never
        write into each other's partial file.

        Raises:
            StorageError: If the output cannot be created or a chunk cannot be copied
        """
        name = output_name(manifest.file_name)
        final_path = self.output_dir / name

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            out = tempfile.NamedTemporaryFile(
                dir=self.output_dir, prefix=f"{name}.", suffix=PARTIAL_SUFFIX, delete=False,
            )
        except OSError as e:
            raise StorageError(f"failed to create final file {final_path}: {e}") from e
        partial_path = Path(out.name)

        current = None
        try:
            with out:
                for position, chunk_id in enumerate(manifest.chunk_ids, start=1):
                    current = (position, chunk_id)
                    with self.scratch.open_chunk(chunk_id) as chunk_file:
                        shutil.copyfileobj(chunk_file, out, COPY_BUFFER_BYTES)
                current = None
                size = out.tell()
            os.replace(partial_path, final_path)
        except OSError as e:
            partial_path.unlink(missing_ok=True)
            if current is None:
                raise StorageError(f"failed to finalize {final_path}: {e}") from e
            position, chunk_id = current
            raise StorageError(f"failed to merge chunk {chunk_id} at position {position}: {e}") from e

        return AssembleResult(
            file_name=manifest.file_name,
            output_path=final_path,
            chunk_count=manifest.chunk_count,
            size=size,
        )

    def cleanup(self, manifest: Manifest) -> List[str]:
        """
        Remove downloaded chunk artifacts from scratch.

        Removal failures are logged and otherwise ignored; the reconstructed
        output is already complete.

        Returns:
            Chunk IDs that could not be removed
        """
        failed = []
        for chunk_id in dict.fromkeys(manifest.chunk_ids):
            try:
                self.scratch.delete_chunk(chunk_id)
            except OSError as e:
                logger.warning(f"Failed to remove temp chunk {chunk_id}: {e}")
                failed.append(chunk_id)
        return failed


def assemble(
    source: ChunkSource,
    scratch: ChunkStore,
    output_dir: Path,
    verify: bool = True,
) -> AssembleResult:
    """
    Fetch a manifest and its chunks from ``source`` and rebuild the file in ``output_dir``.

    Raises:
        ManifestFetchError, ManifestFormatError, ChunkDownloadError, StorageError
    """
    return Assembler(source, scratch, output_dir, verify=verify).run()
