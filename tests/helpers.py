"""Test helpers shared across test modules."""

from pathlib import Path

import httpx

SMALL_CHUNK = 50


def serve_directory(directory: Path, overrides: dict = None) -> httpx.MockTransport:
    """
    Mock transport serving ``<base>/<name>`` from ``directory``.

    Args:
        directory: Directory holding links.txt and chunk artifacts
        overrides: Optional artifact name -> httpx.Response replacing the file

    Returns:
        httpx.MockTransport answering 404 for missing artifacts
    """
    overrides = overrides or {}

    def handler(request):
        name = request.url.path.rsplit('/', 1)[-1]
        if name in overrides:
            return overrides[name]
        path = Path(directory) / name
        if path.is_file():
            return httpx.Response(200, content=path.read_bytes())
        return httpx.Response(404)

    return httpx.MockTransport(handler)
