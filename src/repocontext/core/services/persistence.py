from __future__ import annotations

"""
Selection Persistence Adapter.

Loads and saves the selection map of one repository view. Saves are
debounced: each request snapshots the map and replaces any pending write,
so a burst of toggles results in a single write of the final state and a
superseded snapshot is never written.
"""

import logging
import threading
from typing import Optional, Tuple
from urllib.parse import urlsplit

from repocontext.domain import constants as const
from repocontext.domain.models import SelectionMap
from repocontext.infra.storage import BaseSelectionStore

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# REPOSITORY IDENTIFIERS
# -----------------------------------------------------------------------------

def normalize_repo_id(repo_id: str) -> Optional[str]:
    """
    Derive the storage key of a repository identifier.

    Accepts full URLs ('https://github.com/Owner/Repo/') as well as bare
    'owner/repo' references. Scheme, 'www.', query, fragment, case and
    surrounding slashes do not affect the result.

    Args:
        repo_id: Repository URL or 'owner/repo' reference.

    Returns:
        Optional[str]: 'selectionState_<host>_<path>', or None if unusable.
    """
    raw = (repo_id or "").strip()
    if not raw:
        logger.warning("Cannot derive storage key from an empty repository id.")
        return None

    if "://" not in raw:
        raw = raw.lstrip("/")
        has_host = "." in raw.split("/", 1)[0]
        raw = f"https://{raw}" if has_host else f"https://{const.DEFAULT_REPO_HOST}/{raw}"

    parts = urlsplit(raw)
    host = (parts.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.strip("/").lower()

    if not host or not path:
        logger.warning(f"Cannot derive storage key from repository id: {repo_id!r}")
        return None

    return f"{const.STORAGE_KEY_PREFIX}_{host}_{path}"

# -----------------------------------------------------------------------------
# ADAPTER
# -----------------------------------------------------------------------------

class SelectionPersistenceAdapter:
    """
    Debounced bridge between a selection map and a persistence store.

    The timer handle is owned by the adapter; no process-wide timer state.
    Every scheduled snapshot carries a generation number. Writes are
    serialized, and a snapshot older than the last written one is dropped,
    so a superseded map can never land after a newer one.
    """

    def __init__(
            self,
            store: BaseSelectionStore,
            repo_id: str,
            delay: float = const.SAVE_DEBOUNCE_MS / 1000.0,
    ) -> None:
        """
        Args:
            store: Persistence backend.
            repo_id: Repository URL or reference; normalized internally.
            delay: Quiet period in seconds before a scheduled write runs.
        """
        self._store = store
        self._key = normalize_repo_id(repo_id)
        self._delay = max(0.0, float(delay))
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[int, SelectionMap]] = None
        self._generation = 0
        self._written_generation = 0
        self._closed = False

    @property
    def storage_key(self) -> Optional[str]:
        return self._key

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def load(self) -> Optional[SelectionMap]:
        """Return the persisted map, or None when nothing usable is stored."""
        if self._key is None:
            return None
        state = self._store.get(self._key)
        if state is None:
            logger.info("No persisted selection found; defaulting to all selected.")
        else:
            logger.info(f"Loaded persisted selection ({len(state)} keys).")
        return state

    def schedule_save(self, selection: SelectionMap) -> None:
        """
        Schedule a write of the given map after the debounce window.

        The map is copied immediately; any pending write is cancelled and
        replaced by this one.
        """
        if self._key is None:
            return

        snapshot = dict(selection)
        with self._lock:
            if self._closed:
                logger.debug("Save requested on a closed adapter; ignored.")
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = (self._generation, snapshot)
            timer = threading.Timer(self._delay, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def flush(self) -> bool:
        """Write the pending snapshot now. Returns False if nothing was written."""
        with self._lock:
            pending = self._take_pending()
        if pending is None:
            return False
        return self._write(*pending)

    def cancel(self) -> None:
        """Drop the pending write, if any."""
        with self._lock:
            if self._take_pending() is not None:
                logger.debug("Pending selection save dropped.")

    def close(self, flush: bool = False) -> None:
        """
        Tear down the adapter at view disposal.

        Args:
            flush: Write the pending snapshot before closing instead of dropping it.
        """
        if flush:
            self.flush()
        else:
            self.cancel()
        with self._lock:
            self._closed = True

    # --- Internal helpers ---

    def _take_pending(self) -> Optional[Tuple[int, SelectionMap]]:
        """Detach the pending snapshot and cancel its timer. Caller holds the lock."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        pending, self._pending = self._pending, None
        return pending

    def _fire(self) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # Superseded or cancelled while waiting for the lock
                return
            pending, self._pending = self._pending, None
            self._timer = None
        if pending is not None:
            self._write(*pending)

    def _write(self, generation: int, snapshot: SelectionMap) -> bool:
        with self._write_lock:
            if generation <= self._written_generation:
                logger.debug(f"Skipping superseded selection save (generation {generation}).")
                return False

            ok = self._store.set(self._key, snapshot)
            if ok:
                self._written_generation = generation
                logger.debug(f"Selection persisted ({len(snapshot)} keys, generation {generation}).")
            else:
                logger.error("Failed to persist selection state.")
            return ok
