"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload files to the relay for splitting."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Ask the relay to fetch and rebuild a published file."""

    url: str
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class SplitCommand:
    """Split a local file into a local chunk store."""

    file_path: str
    store_dir: str
    command: Literal["split"] = "split"


@dataclass(frozen=True)
class AssembleCommand:
    """Rebuild a file from a local chunk store."""

    store_dir: str
    output_dir: str = "."
    command: Literal["assemble"] = "assemble"


CommandRequest = UploadCommand | DownloadCommand | SplitCommand | AssembleCommand
