from __future__ import annotations

"""
Folder Size Aggregator.

Computes the total byte size of every folder from its descendant files.
Subtree sums are memoized by path key so each folder is computed exactly
once regardless of how many ancestors request it.
"""

import logging
from typing import Dict, Iterable, List, Set, Tuple

from repocontext.core.tree.pathkeys import key_of, parent_key_of
from repocontext.domain.models import FolderSizeMap, Item

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def compute_folder_sizes(items: Iterable[Item]) -> FolderSizeMap:
    """
    Aggregate descendant file sizes for every folder of a listing.

    Args:
        items: Flat listing entries (folders may be implicit).

    Returns:
        FolderSizeMap: Folder key -> total size in bytes.
    """
    file_size, children = _index_listing(items)
    return aggregate(file_size, children)


def aggregate(file_size: Dict[str, int], children: Dict[str, List[str]]) -> FolderSizeMap:
    """
    Resolve folder totals from a file size table and a children index.

    Child keys missing from both tables contribute zero and are logged.
    Traversal uses an explicit post-order stack instead of recursion so
    that deep trees cannot exhaust the interpreter stack.

    Args:
        file_size: File key -> size in bytes.
        children: Folder key -> direct child keys.

    Returns:
        FolderSizeMap: Folder key -> total size in bytes.
    """
    memo: Dict[str, int] = {}

    for folder in children:
        if folder in memo:
            continue

        stack: List[Tuple[str, bool]] = [(folder, False)]
        while stack:
            key, expanded = stack.pop()
            if key in memo:
                continue

            if not expanded:
                stack.append((key, True))
                for child in children.get(key, []):
                    if child in children and child not in memo:
                        stack.append((child, False))
                continue

            total = 0
            for child in children.get(key, []):
                if child in memo:
                    total += memo[child]
                elif child in file_size:
                    total += file_size[child]
                else:
                    logger.warning(f"Missing child reference '{child}' under '{key}'; counted as 0 bytes.")
            memo[key] = total

    return memo

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _index_listing(items: Iterable[Item]) -> Tuple[Dict[str, int], Dict[str, List[str]]]:
    """Build the file size table and parent -> children adjacency in one pass."""
    file_size: Dict[str, int] = {}
    children: Dict[str, List[str]] = {}
    linked: Set[str] = set()

    for item in items:
        key = key_of(item)
        if item.is_folder:
            children.setdefault(key, [])
        else:
            file_size[key] = item.size_bytes or 0

        # Walk upwards until an already linked ancestor; implicit folders get synthesized
        while key not in linked:
            linked.add(key)
            parent = parent_key_of(key)
            if parent is None:
                break
            children.setdefault(parent, []).append(key)
            key = parent

    # A path listed both as file and folder is kept as a folder
    for key in [k for k in file_size if f"{k}/" in children]:
        logger.warning(f"Conflicting kinds at '{key}': ignoring file entry, keeping folder.")
        del file_size[key]
        parent = parent_key_of(key)
        if parent is not None and key in children.get(parent, []):
            children[parent].remove(key)

    return file_size, children
