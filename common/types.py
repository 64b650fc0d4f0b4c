"""Shared data type definitions (Manifest, ChunkDescriptor, SplitResult, AssembleResult)."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


@dataclass(frozen=True)
class ChunkDescriptor:
    """
    Metadata for a single chunk produced by the splitter.
    """
    chunk_id: str
    chunk_index: int
    size: int


@dataclass(frozen=True)
class Manifest:
    """
    Ordered chunk identities of one file.

    ``chunk_ids`` is the reassembly order; identifiers may repeat when the
    file contains equal chunk-sized runs.
    """
    file_name: str
    chunk_ids: Tuple[str, ...] = ()

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_ids)


@dataclass(frozen=True)
class SplitResult:
    """
    Outcome of a successful split.
    """
    file_name: str
    chunks: List[ChunkDescriptor] = field(default_factory=list)

    @property
    def size(self) -> int:
        return sum(chunk.size for chunk in self.chunks)

    @property
    def manifest(self) -> Manifest:
        return Manifest(self.file_name, tuple(chunk.chunk_id for chunk in self.chunks))


@dataclass(frozen=True)
class AssembleResult:
    """
    Outcome of a successful reassembly.
    """
    file_name: str
    output_path: Path
    chunk_count: int
    size: int
