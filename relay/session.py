"""Per-transfer working directories.

Every split or assemble operation runs inside its own ``TransferSession`` so
that concurrent requests never share a chunk store.
"""

import logging
import re
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path

from chunkstore.chunk_storage import ChunkStore
from common.exceptions import ArtifactNotFoundError, InvalidRequestError, StorageError

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"[0-9a-f]{32}")


@dataclass(frozen=True)
class TransferSession:
    """
    Handle on the working directory of one transfer.
    """
    kind: str
    session_id: str
    directory: Path

    @property
    def store(self) -> ChunkStore:
        return ChunkStore(self.directory)

    def discard(self) -> bool:
        """
        Remove the session directory and anything left in it.

        Returns:
            True if the directory is gone, False if removal failed (logged)
        """
        try:
            shutil.rmtree(self.directory)
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning(f"Failed to remove {self.kind} session {self.session_id}: {e}")
            return False
        return True


def open_session(root: Path, kind: str) -> TransferSession:
    """
    Create a fresh, empty session directory under ``root/kind``.

    Raises:
        StorageError: If the directory cannot be created
    """
    session_id = uuid.uuid4().hex
    directory = Path(root) / kind / session_id
    try:
        directory.mkdir(parents=True, exist_ok=False)
    except OSError as e:
        raise StorageError(f"failed to create {kind} session directory {directory}: {e}") from e

    logger.debug(f"Opened {kind} session {session_id} at {directory}")
    return TransferSession(kind=kind, session_id=session_id, directory=directory)


def find_session(root: Path, kind: str, session_id: str) -> TransferSession:
    """
    Resolve an existing session.

    Raises:
        InvalidRequestError: If ``session_id`` is not a session identifier
        ArtifactNotFoundError: If no such session exists
    """
    if not SESSION_ID_PATTERN.fullmatch(session_id):
        raise InvalidRequestError(f"Invalid session id: {session_id!r}")

    directory = Path(root) / kind / session_id
    if not directory.is_dir():
        raise ArtifactNotFoundError(f"Session {session_id} not found")
    return TransferSession(kind=kind, session_id=session_id, directory=directory)
