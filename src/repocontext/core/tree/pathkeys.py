from __future__ import annotations

"""
Path Key Utilities.

Canonicalizes listing entries into the string keys that join the flat
listing, the selection map and the folder size map. Folder keys carry a
trailing separator so that a folder never collides with a file of the
same base name.
"""

import logging
from typing import Iterable, List, Optional

from repocontext.domain.models import Item

logger = logging.getLogger(__name__)

SEPARATOR = "/"
ROOT_KEY = ""

# -----------------------------------------------------------------------------
# KEY DERIVATION
# -----------------------------------------------------------------------------

def key_of(item: Item) -> str:
    """Return the canonical key of an item ('path/' for folders, 'path' for files)."""
    return f"{item.path}{SEPARATOR}" if item.is_folder else item.path


def folder_key(path: str) -> str:
    """Return the folder key for a bare path."""
    return f"{path}{SEPARATOR}" if path else ROOT_KEY


def is_folder_key(key: str) -> bool:
    return key.endswith(SEPARATOR)


def base_path(key: str) -> str:
    """Strip the folder marker from a key."""
    return key[:-1] if is_folder_key(key) else key


def split_segments(path: str) -> List[str]:
    return [p for p in path.split(SEPARATOR) if p]


def parent_key_of(key: str) -> Optional[str]:
    """
    Derive the parent folder key of a file or folder key.

    Args:
        key: File key ('a/b.txt') or folder key ('a/b/').

    Returns:
        Optional[str]: Parent folder key ('a/'), or None for top-level entries.
    """
    if not key:
        return None

    path = base_path(key)
    idx = path.rfind(SEPARATOR)
    if idx == -1:
        return None
    return path[:idx] + SEPARATOR


def ancestor_keys(key: str) -> List[str]:
    """Return every ancestor folder key, nearest first."""
    ancestors: List[str] = []
    parent = parent_key_of(key)
    while parent is not None:
        ancestors.append(parent)
        parent = parent_key_of(parent)
    return ancestors


def descendants_of(folder: str, items: Iterable[Item]) -> List[str]:
    """
    Enumerate the keys of every item located below a folder.

    The implicit root ('' or '/') has every item as descendant.

    Args:
        folder: Folder key (must end with the separator unless it is the root).
        items: Flat listing to scan.

    Returns:
        List[str]: Keys of all descendants, excluding the folder itself.
    """
    if folder and not is_folder_key(folder):
        logger.warning(f"descendants_of called with non-folder key: {folder!r}")
        return []

    folder_base = base_path(folder)
    prefix = folder_base + SEPARATOR if folder_base else ""

    descendants: List[str] = []
    for item in items:
        if item.path.startswith(prefix) and item.path != folder_base:
            descendants.append(key_of(item))
    return descendants
