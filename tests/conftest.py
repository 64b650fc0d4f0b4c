"""Shared pytest fixtures for all tests."""

import pytest

from chunkstore.chunk_storage import ChunkStore
from relay.config import RelaySettings
from tests.helpers import SMALL_CHUNK


@pytest.fixture
def store(tmp_path):
    """
    Create an empty chunk store.

    Returns:
        ChunkStore rooted at a temporary 'published' directory
    """
    return ChunkStore(tmp_path / 'published')


@pytest.fixture
def scratch(tmp_path):
    """Chunk store used as assembler scratch space."""
    return ChunkStore(tmp_path / 'scratch')


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / 'downloads'


@pytest.fixture
def settings(tmp_path):
    """
    Relay settings pointing at temporary directories with a 50-byte chunk bound.
    """
    return RelaySettings(
        host='127.0.0.1',
        port=11451,
        storage_root=tmp_path / 'relay',
        download_dir=tmp_path / 'relay' / 'downloads',
        chunk_size=SMALL_CHUNK,
        fetch_timeout=5.0,
        verify_chunks=True,
    )


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file spanning several 50-byte chunks.

    Returns:
        Path to sample file (130 bytes)
    """
    file_path = tmp_path / 'sample.bin'
    file_path.write_bytes(bytes(range(130)))
    return file_path
