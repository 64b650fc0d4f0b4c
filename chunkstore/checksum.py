"""Content-addressing digests: one-shot, incremental and identifier validation."""

import hashlib
import re

from common.constants import DIGEST_ALGORITHM


def compute_digest(data: bytes, algorithm: str = DIGEST_ALGORITHM) -> str:
    """
    Compute the content address of a chunk.

    Args:
        data: Exact chunk bytes
        algorithm: hashlib algorithm name

    Returns:
        Lowercase hex digest
    """
    return hashlib.new(algorithm, data).hexdigest()


def digest_length(algorithm: str = DIGEST_ALGORITHM) -> int:
    """Number of hex characters in a digest produced by ``algorithm``."""
    return hashlib.new(algorithm).digest_size * 2


def is_valid_chunk_id(chunk_id: str, algorithm: str = DIGEST_ALGORITHM) -> bool:
    """
    Check that a manifest entry looks like a digest of ``algorithm``.

    Blank lines and anything that is not a hex digest of the right length are
    invalid chunk references. Path separators can never pass this check.
    """
    pattern = rf"[0-9a-f]{{{digest_length(algorithm)}}}"
    return re.fullmatch(pattern, chunk_id) is not None


class IncrementalDigest:
    """
    Calculate a digest incrementally while streaming a chunk to disk.

    Usage:
        digest = IncrementalDigest()
        digest.update(piece1)
        digest.update(piece2)
        chunk_id = digest.finalize()
    """

    def __init__(self, algorithm: str = DIGEST_ALGORITHM):
        self._hasher = hashlib.new(algorithm)
        self._finalized = False
        self.size = 0

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)
        self.size += len(data)

    def finalize(self) -> str:
        self._finalized = True
        return self._hasher.hexdigest()

    def verify(self, expected: str) -> bool:
        return self.finalize() == expected
