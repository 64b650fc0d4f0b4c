"""Tests for manifest-driven reassembly."""

import io
import logging

import httpx
import pytest

from chunkstore.assembler import Assembler, assemble, output_name
from chunkstore.checksum import compute_digest
from chunkstore.chunk_source import DirectoryChunkSource, HttpChunkSource
from chunkstore.chunk_storage import ChunkStore
from chunkstore.splitter import split_stream
from common.exceptions import (
    ChunkDownloadError,
    ManifestFetchError,
    ManifestFormatError,
    StorageError,
)
from tests.helpers import SMALL_CHUNK, serve_directory

BASE = 'http://peer.test/published/abc'


def http_source(directory, overrides=None):
    client = httpx.Client(transport=serve_directory(directory, overrides))
    return HttpChunkSource(BASE, client=client)


def publish(store, data, name='file.bin'):
    return split_stream(io.BytesIO(data), name, store, chunk_size=SMALL_CHUNK)


@pytest.mark.parametrize('length', [
    0, 1, SMALL_CHUNK - 1, SMALL_CHUNK, SMALL_CHUNK + 1, 2 * SMALL_CHUNK, 5 * SMALL_CHUNK + 7,
])
def test_round_trip(store, scratch, output_dir, length):
    """Test split then assemble reproduces the bytes exactly."""
    data = bytes((i * 7 + 3) % 256 for i in range(length))
    publish(store, data)

    result = assemble(http_source(store.directory), scratch, output_dir)

    assert result.output_path == output_dir / 'file.bin'
    assert result.output_path.read_bytes() == data
    assert result.size == length
    assert result.chunk_count == -(-length // SMALL_CHUNK)


def test_repeated_identifier_is_read_per_occurrence(store, scratch, output_dir):
    """Test 120 'A' bytes: h1 is read twice, h3 once, output unchanged."""
    data = b'A' * 120
    publish(store, data, name='name')
    h1 = compute_digest(b'A' * 50)
    h3 = compute_digest(b'A' * 20)

    opened = []
    original_open = scratch.open_chunk

    def tracking_open(chunk_id):
        opened.append(chunk_id)
        return original_open(chunk_id)

    scratch.open_chunk = tracking_open

    result = assemble(http_source(store.directory), scratch, output_dir)

    assert opened == [h1, h1, h3]
    assert (output_dir / 'name').read_bytes() == data
    assert result.chunk_count == 3


def test_order_follows_manifest_not_digest_sort(store, scratch, output_dir):
    """Test chunks whose digests sort opposite to upload order are merged in upload order."""
    first, second = b'x' * SMALL_CHUNK, b'y' * SMALL_CHUNK
    if compute_digest(first) < compute_digest(second):
        first, second = second, first
    data = first + second
    publish(store, data)

    result = assemble(http_source(store.directory), scratch, output_dir)

    assert result.output_path.read_bytes() == data


def test_shared_chunk_across_files(tmp_path):
    """Test two files sharing a chunk-sized run each rebuild their own bytes."""
    shared = b'S' * SMALL_CHUNK
    contents = {'one.bin': b'1' * 20 + shared[:30] + shared, 'two.bin': shared + b'2' * 5}

    for name, data in contents.items():
        store = ChunkStore(tmp_path / name / 'store')
        publish(store, data, name=name)
        result = assemble(http_source(store.directory), ChunkStore(tmp_path / name / 'scratch'), tmp_path / 'out')
        assert result.output_path.read_bytes() == data


def test_scratch_is_emptied_after_success(store, scratch, output_dir):
    publish(store, bytes(range(120)))

    assemble(http_source(store.directory), scratch, output_dir)

    assert scratch.list_chunks() == []
    assert not list(output_dir.glob('*.part'))


def test_cleanup_failure_is_only_a_warning(store, scratch, output_dir, caplog):
    publish(store, bytes(range(120)))

    def failing_delete(chunk_id):
        raise PermissionError('read-only scratch')

    scratch.delete_chunk = failing_delete

    with caplog.at_level(logging.WARNING):
        result = assemble(http_source(store.directory), scratch, output_dir)

    assert result.output_path.read_bytes() == bytes(range(120))
    assert 'Failed to remove temp chunk' in caplog.text


def test_manifest_fetch_failure(store, scratch, output_dir):
    store.ensure_directory()
    with pytest.raises(ManifestFetchError):
        assemble(http_source(store.directory), scratch, output_dir)


def test_manifest_connection_failure(scratch, output_dir):
    def handler(request):
        raise httpx.ConnectError('connection refused', request=request)

    source = HttpChunkSource(BASE, client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(ManifestFetchError):
        assemble(source, scratch, output_dir)


def test_empty_manifest_is_format_error(store, scratch, output_dir):
    source = http_source(store.directory, {'links.txt': httpx.Response(200, content=b'')})
    with pytest.raises(ManifestFormatError):
        assemble(source, scratch, output_dir)


def test_empty_file_manifest_yields_zero_length_output(store, scratch, output_dir):
    source = http_source(store.directory, {'links.txt': httpx.Response(200, content=b'empty.txt\n')})

    result = assemble(source, scratch, output_dir)

    assert result.output_path.read_bytes() == b''
    assert result.chunk_count == 0


def test_chunk_failure_names_id_and_position(store, scratch, output_dir):
    """Test chunk 2 of 3 failing aborts with its id and position, no output file."""
    split = publish(store, bytes(range(120)))
    failing_id = split.chunks[1].chunk_id
    source = http_source(store.directory, {f'{failing_id}.zip': httpx.Response(503)})

    with pytest.raises(ChunkDownloadError) as exc_info:
        assemble(source, scratch, output_dir)

    error = exc_info.value
    assert error.chunk_id == failing_id
    assert error.position == 2
    assert error.total == 3
    assert failing_id in str(error)
    assert '503' in str(error)
    assert not (output_dir / 'file.bin').exists()
    assert not list(output_dir.glob('*.part'))


def test_blank_manifest_line_is_invalid_reference(store, scratch, output_dir):
    h = compute_digest(b'q')
    store.write_chunk(h, b'q')
    source = http_source(store.directory, {'links.txt': httpx.Response(200, content=f'f\n{h}\n\n'.encode())})

    with pytest.raises(ChunkDownloadError) as exc_info:
        assemble(source, scratch, output_dir)

    assert exc_info.value.position == 2
    assert 'invalid chunk reference' in str(exc_info.value)


def test_digest_mismatch_is_rejected(store, scratch, output_dir):
    split = publish(store, b'A' * 60)
    tampered_id = split.chunks[1].chunk_id
    source = http_source(store.directory, {f'{tampered_id}.zip': httpx.Response(200, content=b'B' * 10)})

    with pytest.raises(ChunkDownloadError) as exc_info:
        assemble(source, scratch, output_dir)

    assert 'digest mismatch' in str(exc_info.value)
    assert not scratch.chunk_exists(tampered_id)


def test_verification_can_be_disabled(store, scratch, output_dir):
    split = publish(store, b'A' * 60)
    tampered_id = split.chunks[1].chunk_id
    source = http_source(store.directory, {f'{tampered_id}.zip': httpx.Response(200, content=b'B' * 10)})

    result = Assembler(source, scratch, output_dir, verify=False).run()

    assert result.output_path.read_bytes() == b'A' * 50 + b'B' * 10


def test_merge_failure_leaves_no_output(store, scratch, output_dir):
    split = publish(store, bytes(range(120)))
    assembler = Assembler(http_source(store.directory), scratch, output_dir)
    manifest = assembler.fetch_manifest()
    assembler.download_chunks(manifest)
    scratch.delete_chunk(split.chunks[2].chunk_id)

    with pytest.raises(StorageError) as exc_info:
        assembler.merge(manifest)

    assert 'position 3' in str(exc_info.value)
    assert list(output_dir.iterdir()) == []


def test_interleaved_assemblies_keep_their_own_bytes(tmp_path):
    """Test a same-named assembly finishing mid-merge does not corrupt or break the other."""
    output_dir = tmp_path / 'downloads'
    first_store = ChunkStore(tmp_path / 'first')
    second_store = ChunkStore(tmp_path / 'second')
    publish(first_store, b'A' * 120, name='same.bin')
    publish(second_store, b'B' * 30, name='same.bin')
    interleaved = {}

    class InterleavingStore(ChunkStore):
        def open_chunk(self, chunk_id):
            if not interleaved:
                result = assemble(http_source(second_store.directory), ChunkStore(tmp_path / 'scratch-b'), output_dir)
                interleaved['result'] = result
                interleaved['content'] = result.output_path.read_bytes()
            return super().open_chunk(chunk_id)

    result = assemble(http_source(first_store.directory), InterleavingStore(tmp_path / 'scratch-a'), output_dir)

    assert interleaved['result'].size == 30
    assert interleaved['content'] == b'B' * 30
    assert result.size == 120
    assert (output_dir / 'same.bin').read_bytes() == b'A' * 120
    assert [p.name for p in output_dir.iterdir()] == ['same.bin']


def test_blank_file_name_fails_before_download(scratch, output_dir):
    requested = []

    def handler(request):
        requested.append(request.url.path)
        return httpx.Response(200, content=f"\n{compute_digest(b'q')}\n".encode())

    source = HttpChunkSource(BASE, client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(ManifestFormatError):
        assemble(source, scratch, output_dir)

    assert requested == ['/published/abc/links.txt']


def test_output_name_strips_directories():
    assert output_name('../../etc/passwd') == 'passwd'
    assert output_name('dir\\file.txt') == 'file.txt'
    with pytest.raises(StorageError):
        output_name('..')


def test_directory_source(store, scratch, output_dir):
    publish(store, bytes(range(75)))

    result = assemble(DirectoryChunkSource(store.directory), scratch, output_dir)

    assert result.output_path.read_bytes() == bytes(range(75))


def test_http_source_urls():
    source = HttpChunkSource('http://peer/base/', client=httpx.Client())
    assert source.manifest_url == 'http://peer/base/links.txt'
    assert source.chunk_url('abc') == 'http://peer/base/abc.zip'
