from __future__ import annotations

"""
Selection Store Persistence.

Key-value storage of selection maps keyed by normalized repository id.
The default backend is a thread-safe SQLite database in the user data
directory. It is fail-safe: initialization errors disable the store, and
read or write errors are logged and reported through the return value,
never raised. Last write wins.
"""

import json
import logging
import os
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

from repocontext.domain.models import SelectionMap
from repocontext.infra.fs import get_selection_db_path

logger = logging.getLogger(__name__)


class BaseSelectionStore(ABC):
    """
    Contract of a selection persistence backend.
    """

    @abstractmethod
    def get(self, repo_id: str) -> Optional[SelectionMap]:
        """Return the stored map for a repository id, or None."""
        pass

    @abstractmethod
    def set(self, repo_id: str, selection: SelectionMap) -> bool:
        """Replace the stored map for a repository id; False on failure."""
        pass


class SelectionStore(BaseSelectionStore):
    """
    SQLite-backed store of persisted selection maps.

    The map is stored as a JSON object per repository id.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Optional[str] = None) -> None:
        """
        Initialize the store and ensure the schema exists.

        Args:
            db_path: Database file; defaults to the user data directory.
        """
        self._db_path = db_path or get_selection_db_path()
        self._lock = threading.Lock()
        self._enabled = True

        self._init_db()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _init_db(self) -> None:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self._db_path)), exist_ok=True)
            with self._lock:
                with sqlite3.connect(self._db_path) as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS selection_state (
                            repo_id TEXT PRIMARY KEY,
                            state TEXT NOT NULL,
                            updated_at REAL
                        )
                    """)
                    conn.commit()
            logger.debug(f"SelectionStore: Database ready at {self._db_path}")

        except (OSError, sqlite3.Error) as e:
            logger.warning(f"SelectionStore: Initialization failed, persistence disabled: {e}")
            self._enabled = False

    def get(self, repo_id: str) -> Optional[SelectionMap]:
        """
        Retrieve the persisted selection map of a repository.

        Args:
            repo_id: Normalized repository identifier.

        Returns:
            Optional[SelectionMap]: The stored map, or None on miss/error.
        """
        if not self._enabled:
            return None

        try:
            with self._lock:
                with sqlite3.connect(self._db_path) as conn:
                    row = conn.execute(
                        "SELECT state FROM selection_state WHERE repo_id = ?",
                        (repo_id,)
                    ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"SelectionStore: Read error for '{repo_id}': {e}")
            return None

        if not row:
            logger.debug(f"SelectionStore: No state stored for '{repo_id}'")
            return None

        try:
            data = json.loads(row[0])
        except ValueError as e:
            logger.warning(f"SelectionStore: Corrupted state for '{repo_id}': {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"SelectionStore: Unexpected state shape for '{repo_id}'")
            return None
        return {str(k): bool(v) for k, v in data.items()}

    def set(self, repo_id: str, selection: SelectionMap) -> bool:
        """
        Store or replace the selection map of a repository.

        Args:
            repo_id: Normalized repository identifier.
            selection: Map to persist.

        Returns:
            bool: True if the write succeeded.
        """
        if not self._enabled:
            return False

        payload = json.dumps({k: bool(v) for k, v in selection.items()}, sort_keys=True)
        try:
            with self._lock:
                with sqlite3.connect(self._db_path) as conn:
                    conn.execute(
                        "INSERT OR REPLACE INTO selection_state (repo_id, state, updated_at) "
                        "VALUES (?, ?, ?)",
                        (repo_id, payload, time.time())
                    )
                    conn.commit()
            logger.debug(f"SelectionStore: Saved {len(selection)} keys for '{repo_id}'")
            return True

        except sqlite3.Error as e:
            logger.warning(f"SelectionStore: Write error for '{repo_id}': {e}")
            return False


class MemorySelectionStore(BaseSelectionStore):
    """In-process store with the same contract, for tests and embedding."""

    def __init__(self) -> None:
        self._data: Dict[str, SelectionMap] = {}
        self._lock = threading.Lock()
        self.writes = 0

    def get(self, repo_id: str) -> Optional[SelectionMap]:
        with self._lock:
            state = self._data.get(repo_id)
            return dict(state) if state is not None else None

    def set(self, repo_id: str, selection: SelectionMap) -> bool:
        with self._lock:
            self._data[repo_id] = dict(selection)
            self.writes += 1
        return True
