"""Remote chunk sources: where the assembler fetches manifests and chunks from."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol

import httpx

from common.constants import CHUNK_EXTENSION, COPY_BUFFER_BYTES, MANIFEST_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 60.0


class SourceError(Exception):
    """Raised when an artifact cannot be retrieved from a chunk source."""
    pass


class ChunkSource(Protocol):
    """Anything that can hand out the manifest and chunk artifacts of one published file."""

    base_url: str

    def fetch_manifest(self) -> bytes:
        ...

    def stream_chunk(self, chunk_id: str):
        ...


def join_url(base_url: str, name: str) -> str:
    """Build ``base + "/" + name`` without doubling a trailing slash on ``base``."""
    return f"{base_url.rstrip('/')}/{name}"


class HttpChunkSource:
    """
    Fetches artifacts published under an HTTP base location.

    Manifest: ``GET {base}/links.txt``; chunk: ``GET {base}/{digest}.zip``.
    Any non-2xx status or connection failure is a ``SourceError``.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        extension: str = CHUNK_EXTENSION,
    ):
        """
        Initialize HTTP chunk source.

        Args:
            base_url: Location the manifest and chunks are published under
            client: Optional shared httpx client (not closed by this source)
            timeout: Per-request timeout in seconds when creating own client
            extension: Chunk artifact extension
        """
        self.base_url = base_url
        self.extension = extension
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> "HttpChunkSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    @property
    def manifest_url(self) -> str:
        return join_url(self.base_url, MANIFEST_FILENAME)

    def chunk_url(self, chunk_id: str) -> str:
        return join_url(self.base_url, f"{chunk_id}.{self.extension}")

    def fetch_manifest(self) -> bytes:
        url = self.manifest_url
        try:
            response = self.client.get(url)
        except httpx.HTTPError as e:
            raise SourceError(f"GET {url} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise SourceError(f"GET {url} returned status {response.status_code}")
        return response.content

    @contextmanager
    def stream_chunk(self, chunk_id: str) -> Iterator[Iterator[bytes]]:
        """
        Open a streaming download of one chunk.

        Yields:
            Iterator over the response body in pieces
        """
        url = self.chunk_url(chunk_id)
        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise SourceError(f"download failed with status {response.status_code}")
                yield response.iter_bytes(COPY_BUFFER_BYTES)
        except httpx.HTTPError as e:
            raise SourceError(f"GET {url} failed: {type(e).__name__}: {e}") from e


class DirectoryChunkSource:
    """
    Reads artifacts straight from a local published directory.

    Used by the CLI to reassemble a store that was copied by other means.
    """

    def __init__(self, directory: Path, extension: str = CHUNK_EXTENSION):
        self.directory = Path(directory)
        self.base_url = self.directory.as_uri() if self.directory.is_absolute() else str(self.directory)
        self.extension = extension

    def fetch_manifest(self) -> bytes:
        path = self.directory / MANIFEST_FILENAME
        try:
            return path.read_bytes()
        except OSError as e:
            raise SourceError(f"cannot read {path}: {e}") from e

    @contextmanager
    def stream_chunk(self, chunk_id: str) -> Iterator[Iterator[bytes]]:
        path = self.directory / f"{chunk_id}.{self.extension}"
        try:
            f = open(path, 'rb')
        except OSError as e:
            raise SourceError(f"cannot open {path}: {e}") from e
        with f:
            yield iter(lambda: f.read(COPY_BUFFER_BYTES), b"")
