"""Tests for the transfer service."""

import io

import httpx
import pytest

from common.exceptions import InvalidRequestError, ManifestFetchError
from relay.services.transfer_service import TransferService


@pytest.mark.parametrize('file_name', ['a\nb', 'report.pdf\r', ''])
def test_publish_rejects_unrecordable_file_name(settings, file_name):
    """Test a file name that cannot be a single manifest line is rejected before any session exists."""
    service = TransferService(settings)

    with pytest.raises(InvalidRequestError):
        service.publish_upload(io.BytesIO(b'payload'), file_name)

    assert not settings.publish_root.exists()


def test_publish_keeps_session(settings):
    session, result = TransferService(settings).publish_upload(io.BytesIO(b'x' * 70), 'kept.bin')

    assert session.directory.parent == settings.publish_root
    assert (session.directory / 'links.txt').read_bytes().startswith(b'kept.bin\n')
    assert len(result.chunks) == 2


def test_failed_download_discards_scratch(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    service = TransferService(settings, http_client=httpx.Client(transport=transport))

    with pytest.raises(ManifestFetchError):
        service.download('http://peer/missing')

    assert list(settings.scratch_root.iterdir()) == []
