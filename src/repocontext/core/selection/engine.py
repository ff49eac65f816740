from __future__ import annotations

"""
Selection State Engine.

Owns the selection map of one repository view and keeps folder states
consistent with their children. A folder toggle cascades to every
descendant; any toggle then re-derives the tri-state of each ancestor
from its direct children, up to the root.

The persisted map stores booleans only (a folder is True iff it is fully
checked). The 'mixed' classification is tracked alongside the map and
reported through ToggleResult and state_of().
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from repocontext.core.tree.hierarchy import HierarchyIndex, build_index
from repocontext.core.tree.pathkeys import ancestor_keys, descendants_of, is_folder_key
from repocontext.domain.models import Item, SelectionMap, TriState

logger = logging.getLogger(__name__)

SelectionListener = Callable[[SelectionMap], None]

# -----------------------------------------------------------------------------
# RESULT MODEL
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ToggleResult:
    """
    Outcome of a state transition.

    Attributes:
        changed: Every key whose stored value or tri-state classification
            changed, mapped to its new tri-state.
    """
    changed: Dict[str, TriState] = field(default_factory=dict)

    def __contains__(self, key: object) -> bool:
        return key in self.changed

    def __len__(self) -> int:
        return len(self.changed)

    @property
    def keys(self) -> Set[str]:
        return set(self.changed)

    @property
    def indeterminate(self) -> Set[str]:
        return {k for k, state in self.changed.items() if state is TriState.MIXED}

# -----------------------------------------------------------------------------
# ENGINE
# -----------------------------------------------------------------------------

class SelectionEngine:
    """
    Tri-state selection over a reconstructed repository hierarchy.

    One instance belongs to one repository view and is discarded on refresh.
    """

    def __init__(self) -> None:
        self._index: HierarchyIndex = HierarchyIndex()
        self._items: List[Item] = []
        self._selection: SelectionMap = {}
        self._mixed: Set[str] = set()
        self._listeners: List[SelectionListener] = []

    # --- Lifecycle ---

    def initialize(
            self,
            items: Iterable[Item],
            persisted: Optional[Mapping[str, object]] = None,
            index: Optional[HierarchyIndex] = None,
    ) -> SelectionMap:
        """
        Populate the selection map for a listing.

        Persisted keys that no longer exist are dropped; keys missing from
        the persisted map default to selected. Folder states are reconciled
        bottom-up before returning.

        Args:
            items: Flat listing entries.
            persisted: Previously saved selection map, if any.
            index: Prebuilt hierarchy index for the same listing.

        Returns:
            SelectionMap: The live selection map owned by this engine.
        """
        if index is None:
            _, index = build_index(items)

        self._index = index
        self._items = index.items
        self._mixed = set()

        selection: SelectionMap = {}
        if persisted:
            stale = 0
            for key, value in persisted.items():
                if key in index:
                    selection[key] = bool(value)
                else:
                    stale += 1
            if stale:
                logger.debug(f"Pruned {stale} stale selection key(s).")

        for key in index.nodes:
            selection.setdefault(key, True)

        self._selection = selection
        self._reconcile_all()

        logger.info(
            f"Selection initialized: {len(selection)} keys "
            f"({'restored' if persisted else 'defaulted to selected'})."
        )
        return self._selection

    def subscribe(self, listener: SelectionListener) -> None:
        """Register a callback invoked with the map after every effective change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: SelectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Accessors ---

    @property
    def selection(self) -> SelectionMap:
        return self._selection

    @property
    def index(self) -> HierarchyIndex:
        return self._index

    def state_of(self, key: str) -> Optional[TriState]:
        """Return the display tri-state of a key, or None if it is not tracked."""
        if key not in self._selection:
            return None
        return self._state(key)

    def selected_files(self) -> List[Item]:
        """Return the selected file items in path order."""
        return sorted(
            (item for item in self._index.file_items() if self._selection.get(item.path)),
            key=lambda i: i.path,
        )

    # --- Transitions ---

    def toggle(self, key: str, new_value: bool) -> ToggleResult:
        """
        Set a key and propagate the change through the hierarchy.

        Args:
            key: File or folder key to change.
            new_value: Target checked state.

        Returns:
            ToggleResult: Keys whose value or tri-state changed. The toggled
            key itself is always reported. Empty for unknown keys.
        """
        if key not in self._selection:
            logger.warning(f"Ignoring toggle of unknown key: {key!r}")
            return ToggleResult()

        value = bool(new_value)
        before: Dict[str, TriState] = {key: self._state(key)}

        self._selection[key] = value
        self._mixed.discard(key)

        # 1. Downwards: explicit override of the whole subtree
        if is_folder_key(key):
            for descendant in descendants_of(key, self._items):
                before.setdefault(descendant, self._state(descendant))
                self._selection[descendant] = value
                self._mixed.discard(descendant)

        # 2. Upwards: recompute ancestors from their direct children
        for ancestor in ancestor_keys(key):
            if ancestor in self._selection:
                before.setdefault(ancestor, self._state(ancestor))
        self.ascend(key)

        changed = {k: self._state(k) for k, old in before.items() if self._state(k) is not old}
        changed[key] = self._state(key)

        logger.debug(f"Toggled '{key}' -> {value}; {len(changed)} key(s) affected.")
        self._notify()
        return ToggleResult(changed=changed)

    def set_all(self, value: bool) -> ToggleResult:
        """Check or uncheck every tracked key."""
        target = TriState.from_bool(bool(value))
        changed = {k: target for k in self._selection if self._state(k) is not target}

        for key in self._selection:
            self._selection[key] = bool(value)
        self._mixed.clear()

        if changed:
            self._notify()
        return ToggleResult(changed=changed)

    def ascend(self, key: str) -> Dict[str, TriState]:
        """
        Recompute every ancestor of a key from its direct children.

        Returns:
            Dict[str, TriState]: Ancestors whose state changed.
        """
        changed: Dict[str, TriState] = {}
        for ancestor in ancestor_keys(key):
            if ancestor not in self._selection:
                continue
            old = self._state(ancestor)
            new = self._recompute(ancestor)
            if new is not old:
                changed[ancestor] = new
        return changed

    def is_consistent(self) -> bool:
        """Verify that every folder state is a fixed point of the ascend rule."""
        for key in self._selection:
            if not is_folder_key(key):
                continue
            if not self._tracked_children(key):
                continue
            derived = self._derive(key)
            if derived is not self._state(key):
                return False
            if self._selection[key] != (derived is TriState.CHECKED):
                return False
        return True

    # --- Internal helpers ---

    def _state(self, key: str) -> TriState:
        if key in self._mixed:
            return TriState.MIXED
        return TriState.from_bool(self._selection.get(key, False))

    def _tracked_children(self, key: str) -> List[str]:
        return [c for c in self._index.children_of(key) if c in self._selection]

    def _derive(self, folder: str) -> TriState:
        """Classify a folder from its direct children without mutating state."""
        children = self._tracked_children(folder)
        if not children:
            # Empty folders are their own authority
            return TriState.from_bool(self._selection.get(folder, False))

        states = {self._state(c) for c in children}
        if states == {TriState.CHECKED}:
            return TriState.CHECKED
        if states == {TriState.UNCHECKED}:
            return TriState.UNCHECKED
        return TriState.MIXED

    def _recompute(self, folder: str) -> TriState:
        state = self._derive(folder)
        self._selection[folder] = state is TriState.CHECKED
        if state is TriState.MIXED:
            self._mixed.add(folder)
        else:
            self._mixed.discard(folder)
        return state

    def _reconcile_all(self) -> None:
        """Recompute every folder, deepest first."""
        folders = [k for k in self._selection if is_folder_key(k)]
        folders.sort(key=lambda k: k.count("/"), reverse=True)
        for folder in folders:
            self._recompute(folder)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._selection)
            except Exception as e:
                logger.error(f"Selection listener failed: {e}", exc_info=True)
