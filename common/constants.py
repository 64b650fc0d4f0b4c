"""Protocol-wide constants (chunk bound, artifact names, digest algorithm)."""

CHUNK_SIZE_BYTES: int = 50 * 1024 * 1024  # 50 MiB default chunk bound

MANIFEST_FILENAME: str = "links.txt"
CHUNK_EXTENSION: str = "zip"

# Digest used for content addressing; md5 keeps manifests readable by existing producers.
DIGEST_ALGORITHM: str = "md5"

COPY_BUFFER_BYTES: int = 64 * 1024

DEFAULT_RELAY_PORT: int = 11451
DEFAULT_STORAGE_ROOT: str = "./temp"
