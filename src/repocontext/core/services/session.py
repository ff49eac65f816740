from __future__ import annotations

"""
Repository View Session.

Per-view owner of the derived state: reconstructed tree, selection engine,
folder sizes and the persistence adapter. A refresh rebuilds all of them
from the new listing; nothing is shared between views.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from repocontext.core.selection.engine import SelectionEngine, ToggleResult
from repocontext.core.selection.metrics import SelectionMetrics, compute_metrics
from repocontext.core.services.persistence import SelectionPersistenceAdapter
from repocontext.core.tree.hierarchy import build_index
from repocontext.core.tree.sizes import compute_folder_sizes
from repocontext.domain import constants as const
from repocontext.domain.models import FolderSizeMap, Item, SelectionMap, Tree, TriState
from repocontext.infra.storage import BaseSelectionStore

logger = logging.getLogger(__name__)


@dataclass
class ViewSnapshot:
    """
    State handed to a renderer after (re)loading a view.

    Attributes:
        tree: Reconstructed hierarchy.
        selection: Live selection map.
        folder_sizes: Aggregated folder sizes.
        truncated: Whether the listing was incomplete.
    """
    tree: Tree = field(default_factory=dict)
    selection: SelectionMap = field(default_factory=dict)
    folder_sizes: FolderSizeMap = field(default_factory=dict)
    truncated: bool = False


class RepositoryView:
    """
    Selection session over one repository listing.
    """

    def __init__(
            self,
            repo_id: str,
            store: BaseSelectionStore,
            save_delay: float = const.SAVE_DEBOUNCE_MS / 1000.0,
            bytes_per_token: int = const.BYTES_PER_TOKEN_ESTIMATE,
    ) -> None:
        """
        Args:
            repo_id: Repository URL or reference used for persistence.
            store: Persistence backend.
            save_delay: Debounce window of selection saves, in seconds.
            bytes_per_token: Density used for token estimates.
        """
        self._repo_id = repo_id
        self._store = store
        self._save_delay = save_delay
        self._bytes_per_token = bytes_per_token

        self._engine: Optional[SelectionEngine] = None
        self._adapter: Optional[SelectionPersistenceAdapter] = None
        self._snapshot = ViewSnapshot()

    # --- Lifecycle ---

    def open(self, items: Iterable[Item], truncated: bool = False) -> ViewSnapshot:
        """
        Build every derived structure for a listing and restore the selection.

        Args:
            items: Flat listing supplied by the repository lister.
            truncated: Whether the lister reported an incomplete listing.

        Returns:
            ViewSnapshot: Tree, selection and folder sizes for rendering.
        """
        self.close()

        listing = list(items)
        tree, index = build_index(listing)
        folder_sizes = compute_folder_sizes(index.items)

        adapter = SelectionPersistenceAdapter(self._store, self._repo_id, delay=self._save_delay)
        engine = SelectionEngine()
        selection = engine.initialize(index.items, adapter.load(), index=index)
        engine.subscribe(adapter.schedule_save)

        self._engine = engine
        self._adapter = adapter
        self._snapshot = ViewSnapshot(
            tree=tree,
            selection=selection,
            folder_sizes=folder_sizes,
            truncated=truncated,
        )

        logger.info(
            f"Opened view for {self._repo_id}: {len(index)} entries, "
            f"{len(folder_sizes)} folders{' (truncated)' if truncated else ''}."
        )
        return self._snapshot

    def refresh(self, items: Iterable[Item], truncated: bool = False) -> ViewSnapshot:
        """Discard the current state and rebuild from a new listing."""
        logger.info(f"Refreshing view for {self._repo_id}")
        return self.open(items, truncated=truncated)

    def close(self, flush: bool = False) -> None:
        """
        Dispose of the view state.

        Args:
            flush: Write a pending selection save instead of dropping it.
        """
        if self._engine is not None and self._adapter is not None:
            self._engine.unsubscribe(self._adapter.schedule_save)
        if self._adapter is not None:
            self._adapter.close(flush=flush)

        self._engine = None
        self._adapter = None
        self._snapshot = ViewSnapshot()

    # --- Interaction ---

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def snapshot(self) -> ViewSnapshot:
        return self._snapshot

    @property
    def adapter(self) -> Optional[SelectionPersistenceAdapter]:
        return self._adapter

    def toggle(self, key: str, value: bool) -> ToggleResult:
        """Apply a user toggle; a debounced save is scheduled on change."""
        if self._engine is None:
            logger.warning("Toggle requested on a closed view; ignored.")
            return ToggleResult()
        return self._engine.toggle(key, value)

    def set_all(self, value: bool) -> ToggleResult:
        if self._engine is None:
            return ToggleResult()
        return self._engine.set_all(value)

    def state_of(self, key: str) -> Optional[TriState]:
        if self._engine is None:
            return None
        return self._engine.state_of(key)

    def selected_files(self) -> List[Item]:
        if self._engine is None:
            return []
        return self._engine.selected_files()

    def metrics(self) -> SelectionMetrics:
        if self._engine is None:
            return SelectionMetrics()
        return compute_metrics(
            self._engine.index.file_items(),
            self._engine.selection,
            bytes_per_token=self._bytes_per_token,
        )

    def flush(self) -> bool:
        """Persist any pending selection change immediately."""
        if self._adapter is None:
            return False
        return self._adapter.flush()
