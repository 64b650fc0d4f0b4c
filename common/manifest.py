"""Newline-delimited manifest codec.

The manifest artifact holds the original file name on its first line and one
chunk identifier per following line, in concatenation order::

    report.pdf
    <hex digest of chunk 1>
    <hex digest of chunk 2>
"""

import io
from typing import BinaryIO, Iterable, List

from common.exceptions import ManifestFormatError
from common.types import Manifest

ENCODING = "utf-8"
LINE_BREAKS = ("\n", "\r")


def is_valid_line(text: str) -> bool:
    """Whether ``text`` can be stored as a single manifest line."""
    return not any(c in text for c in LINE_BREAKS)


def _check_line(text: str) -> str:
    if not is_valid_line(text):
        raise ValueError(f"manifest lines cannot contain line breaks: {text!r}")
    return text


def encode_manifest(file_name: str, chunk_ids: Iterable[str]) -> bytes:
    """
    Serialize a file name and chunk identifiers, each line newline-terminated.

    Raises:
        ValueError: If the file name or an identifier contains a line break
    """
    lines = [file_name, *chunk_ids]
    return "".join(f"{_check_line(line)}\n" for line in lines).encode(ENCODING)


def write_manifest(stream: BinaryIO, manifest: Manifest) -> None:
    stream.write(encode_manifest(manifest.file_name, manifest.chunk_ids))


def _split_lines(text: str) -> List[str]:
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def decode_manifest(stream: BinaryIO) -> Manifest:
    """
    Read a manifest from a binary stream.

    Every line after the header is an identifier, blank lines included; a
    blank identifier is rejected later as an invalid chunk reference.

    Raises:
        ManifestFormatError: If the stream is empty, not valid UTF-8, or its
            file name line is blank
    """
    data = stream.read()
    if not data:
        raise ManifestFormatError("manifest is empty: cannot read file name")

    try:
        text = data.decode(ENCODING)
    except UnicodeDecodeError as e:
        raise ManifestFormatError(f"manifest is not valid {ENCODING}: {e}") from e

    lines = _split_lines(text)
    if not lines[0]:
        raise ManifestFormatError("manifest file name line is blank")
    return Manifest(file_name=lines[0], chunk_ids=tuple(lines[1:]))


def decode_manifest_bytes(data: bytes) -> Manifest:
    return decode_manifest(io.BytesIO(data))


class ManifestWriter:
    """
    Incremental manifest writer used while splitting.

    The header is written on construction; each ``append`` writes and flushes
    one identifier line so that the file on disk always reflects the chunks
    persisted so far.

    Raises:
        ValueError: If the file name or an identifier contains a line break
    """

    def __init__(self, stream: BinaryIO, file_name: str):
        self._stream = stream
        self.file_name = file_name
        self.count = 0
        self._write_line(file_name)

    def append(self, chunk_id: str) -> None:
        self._write_line(chunk_id)
        self.count += 1

    def _write_line(self, line: str) -> None:
        self._stream.write(f"{_check_line(line)}\n".encode(ENCODING))
        self._stream.flush()
