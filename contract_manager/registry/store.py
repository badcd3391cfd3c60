"""File-based JSON storage for registry state.

One snapshot per network, stored as ``state.json`` in the network's state
directory. Snapshots are replaced atomically so a crash mid-write never
leaves a half-written file behind. Writers in different processes
serialize on ``state.json.lock`` through :meth:`StateStore.lock`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from contract_manager.registry.errors import StateStoreError
from contract_manager.registry.models import STATE_FORMAT_VERSION, RegistryState

logger = logging.getLogger(__name__)


class StateStore:
    """Snapshot storage for a single registry instance."""

    STATE_FILE = "state.json"
    LOCK_FILE = "state.json.lock"

    def __init__(self, base_dir: str | Path, lock_timeout: float = 30.0) -> None:
        self.base_dir = Path(base_dir)
        self.state_path = self.base_dir / self.STATE_FILE
        self.lock_path = self.base_dir / self.LOCK_FILE
        self.lock_timeout = lock_timeout
        self._file_lock = FileLock(str(self.lock_path))

    def exists(self) -> bool:
        return self.state_path.exists()

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the inter-process write lock for this store.

        Reentrant for the same store object. Raises ``StateStoreError`` if
        another process holds the lock for longer than ``lock_timeout``.
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        try:
            self._file_lock.acquire(timeout=self.lock_timeout)
        except Timeout as exc:
            raise StateStoreError(f"Timed out waiting for {self.lock_path}") from exc
        try:
            yield
        finally:
            self._file_lock.release()

    def load(self) -> RegistryState:
        if not self.state_path.exists():
            raise StateStoreError(f"No registry deployed at {self.state_path}")
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StateStoreError(f"Cannot read {self.state_path}: {exc}") from exc

        version = data.get("version")
        if version != STATE_FORMAT_VERSION:
            raise StateStoreError(
                f"Unsupported state format {version!r} in {self.state_path}"
            )
        try:
            return RegistryState.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise StateStoreError(f"Corrupt registry state in {self.state_path}: {exc}") from exc

    def save(self, state: RegistryState) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state.to_dict(), fh, indent=2)
            os.replace(tmp_name, self.state_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved registry state to {self.state_path}")
