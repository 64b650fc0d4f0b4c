"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from chunkstore.assembler import assemble
from chunkstore.chunk_source import DirectoryChunkSource
from chunkstore.chunk_storage import ChunkStore
from chunkstore.splitter import split_file
from common.exceptions import TransferException
from common.logging_config import get_logger
from cli.config import Config
from cli.models import AssembleCommand, DownloadCommand, SplitCommand, UploadCommand
from cli.relay_client import RelayClient
from cli.utils import format_file_size

logger = get_logger(__name__)


_client: Optional[RelayClient] = None


def get_client() -> RelayClient:
    """
    Get or create global RelayClient instance.

    Returns:
        RelayClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new RelayClient instance")
        config = Config(Path.home() / '.chunkrelay' / 'config.json')
        _client = RelayClient(config)
    return _client


def close_client() -> None:
    """Close the global RelayClient, if one was created."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def handle_upload(cmd: UploadCommand, client: Optional[RelayClient] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file paths
        client: Optional RelayClient for dependency injection (testing)
    """
    if client is None:
        client = get_client()
    return client.upload(list(cmd.file_list))


def handle_download(cmd: DownloadCommand, client: Optional[RelayClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.download(cmd.url)


def handle_split(cmd: SplitCommand) -> str:
    """
    Handle 'split' command locally, without a relay.
    """
    try:
        result = split_file(Path(cmd.file_path), ChunkStore(Path(cmd.store_dir)))
    except (TransferException, ValueError) as e:
        logger.error(f"Split of {cmd.file_path} failed: {e}")
        return f"Error: {e}"

    return (
        f"Split: {result.file_name} ({format_file_size(result.size)}) "
        f"into {len(result.chunks)} chunks in {cmd.store_dir}"
    )


def handle_assemble(cmd: AssembleCommand) -> str:
    """
    Handle 'assemble' command locally: the store directory acts as the chunk
    source and receives the scratch downloads in a subdirectory.
    """
    store_dir = Path(cmd.store_dir)
    source = DirectoryChunkSource(store_dir)
    scratch = ChunkStore(store_dir / '.scratch')

    try:
        result = assemble(source, scratch, Path(cmd.output_dir))
    except TransferException as e:
        logger.error(f"Assemble from {store_dir} failed: {e}")
        return f"Error: {e}"

    try:
        scratch.directory.rmdir()
    except OSError as e:
        logger.warning(f"Failed to remove scratch directory {scratch.directory}: {e}")

    return f"Assembled: {result.output_path} ({format_file_size(result.size)}, {result.chunk_count} chunks)"
