"""Exception taxonomy shared by the splitter, assembler and relay service."""

from typing import Optional


class TransferException(Exception):
    """
    Base exception class for all chunk transfer errors.
    """
    pass


class InvalidRequestError(TransferException):
    """
    Raised when a request is missing a required parameter or upload field.
    """
    pass


class InputReadError(TransferException):
    """
    Raised when the inbound byte stream cannot be read.
    """
    pass


class StorageError(TransferException):
    """
    Raised when a directory, chunk artifact, manifest or output file cannot be
    created, written or read on the local filesystem.
    """
    pass


class ManifestFetchError(TransferException):
    """
    Raised when the manifest artifact cannot be retrieved from a chunk source.
    """
    pass


class ManifestFormatError(TransferException):
    """
    Raised when a manifest stream cannot be decoded (e.g. it is empty).
    """
    pass


class ChunkDownloadError(TransferException):
    """
    Raised when a chunk cannot be retrieved or persisted.

    Carries the offending chunk identifier and its 1-based position in the
    manifest.
    """

    def __init__(self, chunk_id: str, position: int, reason: str, total: Optional[int] = None):
        self.chunk_id = chunk_id
        self.position = position
        self.total = total
        self.reason = reason
        where = f"{position}/{total}" if total is not None else str(position)
        super().__init__(f"failed to download chunk {chunk_id!r} at position {where}: {reason}")


class ArtifactNotFoundError(TransferException):
    """
    Raised when a published session or artifact does not exist.
    """
    pass
