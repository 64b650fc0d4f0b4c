"""HTTP client for communicating with a relay service."""

import os
import uuid

import httpx

from common.logging_config import get_logger
from cli.config import Config
from cli.utils import format_file_size

logger = get_logger(__name__)


class RelayClient:
    """HTTP client for the relay API. Failures are reported, never retried."""

    ERROR_MESSAGES = {
        'INVALID_REQUEST': 'Request rejected by relay',
        'INPUT_READ_ERROR': 'Relay could not read the uploaded file.',
        'STORAGE_ERROR': 'Relay storage error.',
        'MANIFEST_FETCH_ERROR': 'Could not fetch links.txt from the given location.',
        'MANIFEST_FORMAT_ERROR': 'links.txt at the given location is empty or malformed.',
        'CHUNK_DOWNLOAD_ERROR': 'A chunk could not be downloaded.',
        'ARTIFACT_NOT_FOUND': 'Published artifact not found.',
    }

    def __init__(self, config: Config):
        """
        Initialize relay client.

        Args:
            config: Configuration instance
        """
        self.config = config
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout()
        )
        logger.info(f"Initialized RelayClient [base_url={config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Calculate timeout for upload based on file size.

        Returns:
            Timeout in seconds (configured base + 0.1s per MiB)
        """
        size_mb = file_size / (1024 * 1024)
        return self.config.get_timeout() + size_mb * 0.1

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map a relay error response to a user-facing message.

        Args:
            response: HTTP response object

        Returns:
            Message including the relay's detail string
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text or 'Unknown error'
            code = 'UNKNOWN'

        message = self.ERROR_MESSAGES.get(code, f"Relay error (status {response.status_code})")
        return f"{message} {detail} (Code: {code})"

    def _headers(self) -> dict:
        return {'X-Request-ID': str(uuid.uuid4())}

    def upload(self, file_paths: list[str]) -> str:
        """
        Upload local files; the relay splits each into its own publish session.

        Args:
            file_paths: Local file paths

        Returns:
            One result line per file
        """
        results = []

        for file_path in file_paths:
            if not os.path.isfile(file_path):
                results.append(f"Error: File not found: {file_path}")
                continue

            file_size = os.path.getsize(file_path)
            filename = os.path.basename(file_path)

            try:
                with open(file_path, 'rb') as f:
                    response = self.session.post(
                        '/upload',
                        files={'file': (filename, f)},
                        headers=self._headers(),
                        timeout=self._calculate_upload_timeout(file_size),
                    )
            except httpx.HTTPError as e:
                logger.error(f"Upload of {file_path} failed: {e}")
                results.append(f"Error: {filename}: {type(e).__name__}: {e}")
                continue

            if response.status_code == 200:
                result = response.json()
                base_url = f"{self.config.get_base_url()}{result['base_path']}"
                results.append(
                    f"Uploaded: {result['file_name']} "
                    f"({format_file_size(result['size'])}, {result['chunk_count']} chunks) -> {base_url}"
                )
            else:
                results.append(f"Error: {filename}: {self._format_error(response)}")

        return "\n".join(results)

    def download(self, url: str) -> str:
        """
        Ask the relay to reconstruct the file published at ``url``.

        Returns:
            Success or error message
        """
        try:
            response = self.session.get('/download', params={'url': url}, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Download request for {url} failed: {e}")
            return f"Error: {type(e).__name__}: {e}"

        if response.status_code == 200:
            result = response.json()
            return (
                f"Downloaded: {result['file_name']} "
                f"({format_file_size(result['size'])}, {result['chunk_count']} chunks)"
            )
        return f"Error: {self._format_error(response)}"

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()
