"""Configuration settings for the relay server."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from common.constants import CHUNK_SIZE_BYTES, DEFAULT_RELAY_PORT, DEFAULT_STORAGE_ROOT


RELAY_HOST = os.environ.get("CHUNKRELAY_HOST", "0.0.0.0")

RELAY_PORT = int(os.environ.get("CHUNKRELAY_PORT", str(DEFAULT_RELAY_PORT)))

STORAGE_ROOT = os.environ.get("CHUNKRELAY_STORAGE_ROOT", DEFAULT_STORAGE_ROOT)

UPLOAD_SESSION_KIND = "published"
DOWNLOAD_SESSION_KIND = "scratch"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class RelaySettings:
    """
    Process-wide settings, read once at startup and never mutated.
    """
    host: str
    port: int
    storage_root: Path
    download_dir: Path
    chunk_size: int = CHUNK_SIZE_BYTES
    fetch_timeout: float = 60.0
    verify_chunks: bool = True

    @property
    def publish_root(self) -> Path:
        return self.storage_root / UPLOAD_SESSION_KIND

    @property
    def scratch_root(self) -> Path:
        return self.storage_root / DOWNLOAD_SESSION_KIND


def load_settings(environ: Optional[Mapping[str, str]] = None) -> RelaySettings:
    """
    Build settings from CHUNKRELAY_* environment variables.

    Raises:
        ValueError: If a numeric variable is malformed or out of range
    """
    env = os.environ if environ is None else environ

    storage_root = Path(env.get("CHUNKRELAY_STORAGE_ROOT", STORAGE_ROOT))
    download_dir = Path(env.get("CHUNKRELAY_DOWNLOAD_DIR", str(storage_root / "downloads")))
    chunk_size = int(env.get("CHUNKRELAY_CHUNK_SIZE", str(CHUNK_SIZE_BYTES)))
    if chunk_size <= 0:
        raise ValueError(f"CHUNKRELAY_CHUNK_SIZE must be positive, got {chunk_size}")

    return RelaySettings(
        host=env.get("CHUNKRELAY_HOST", RELAY_HOST),
        port=int(env.get("CHUNKRELAY_PORT", str(RELAY_PORT))),
        storage_root=storage_root,
        download_dir=download_dir,
        chunk_size=chunk_size,
        fetch_timeout=float(env.get("CHUNKRELAY_FETCH_TIMEOUT", "60")),
        verify_chunks=_parse_bool(env.get("CHUNKRELAY_VERIFY_CHUNKS", "true")),
    )
