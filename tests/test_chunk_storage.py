"""Tests for chunk storage and content-addressing digests."""

import hashlib

import pytest

from chunkstore.checksum import (
    IncrementalDigest,
    compute_digest,
    digest_length,
    is_valid_chunk_id,
)


def test_compute_digest_is_md5_hex():
    assert compute_digest(b'hello') == hashlib.md5(b'hello').hexdigest()


def test_identical_bytes_give_identical_ids():
    assert compute_digest(b'A' * 50) == compute_digest(bytes(b'A' * 50))
    assert compute_digest(b'A' * 50) != compute_digest(b'A' * 49)


def test_incremental_digest_matches_one_shot():
    digest = IncrementalDigest()
    digest.update(b'hel')
    digest.update(b'lo')

    assert digest.size == 5
    assert digest.finalize() == compute_digest(b'hello')


def test_incremental_digest_rejects_update_after_finalize():
    digest = IncrementalDigest()
    digest.finalize()
    with pytest.raises(ValueError):
        digest.update(b'x')


@pytest.mark.parametrize('chunk_id,valid', [
    (hashlib.md5(b'x').hexdigest(), True),
    ('', False),
    ('ABCDEF' + '0' * 26, False),
    ('0' * 31, False),
    ('../' + '0' * 29, False),
    (hashlib.sha256(b'x').hexdigest(), False),
])
def test_is_valid_chunk_id(chunk_id, valid):
    assert is_valid_chunk_id(chunk_id) is valid


def test_digest_length_follows_algorithm():
    assert digest_length('md5') == 32
    assert digest_length('sha256') == 64
    assert is_valid_chunk_id(hashlib.sha256(b'x').hexdigest(), 'sha256')


def test_write_and_read_chunk(store):
    chunk_id = compute_digest(b'data')
    path = store.write_chunk(chunk_id, b'data')

    assert path == store.directory / f'{chunk_id}.zip'
    assert store.get_chunk_path(chunk_id).read_bytes() == b'data'
    assert store.chunk_exists(chunk_id)


def test_chunk_writer_leaves_no_artifact_on_failure(store):
    """Test a failed write never leaves a file under the chunk name."""
    with pytest.raises(RuntimeError):
        with store.chunk_writer('abc') as f:
            f.write(b'partial')
            raise RuntimeError('boom')

    assert not store.chunk_exists('abc')
    assert list(store.directory.iterdir()) == []


def test_delete_chunk(store):
    store.write_chunk('abc', b'x')

    assert store.delete_chunk('abc') is True
    assert store.delete_chunk('abc') is False
    assert not store.chunk_exists('abc')


def test_list_chunks_ignores_manifest(store):
    store.write_chunk('aaa', b'1')
    store.write_chunk('bbb', b'2')
    with store.open_manifest_writer() as f:
        f.write(b'name\n')

    assert sorted(store.list_chunks()) == ['aaa', 'bbb']


def test_list_chunks_missing_directory(tmp_path):
    from chunkstore.chunk_storage import ChunkStore
    assert ChunkStore(tmp_path / 'nope').list_chunks() == []
