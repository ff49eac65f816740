from __future__ import annotations

"""
Repository Tree Domain Models.

Defines the flat listing entries supplied by repository listers, the
tagged node variants of the reconstructed hierarchy, and the value types
shared by the selection and size aggregation subsystems.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# ITEM KINDS AND TRI-STATE
# -----------------------------------------------------------------------------

class ItemKind(str, Enum):
    """Kind of entry in a repository listing."""
    FILE = "file"
    FOLDER = "folder"


class TriState(str, Enum):
    """
    Display state of a selectable entry.

    Files are only ever CHECKED or UNCHECKED. Folders are MIXED when their
    direct children disagree.
    """
    CHECKED = "checked"
    UNCHECKED = "unchecked"
    MIXED = "mixed"

    @classmethod
    def from_bool(cls, value: bool) -> "TriState":
        return cls.CHECKED if value else cls.UNCHECKED


# Aliases accepted from listers speaking the git object vocabulary
_KIND_ALIASES: Dict[str, ItemKind] = {
    "file": ItemKind.FILE,
    "blob": ItemKind.FILE,
    "folder": ItemKind.FOLDER,
    "tree": ItemKind.FOLDER,
    "dir": ItemKind.FOLDER,
}

# -----------------------------------------------------------------------------
# FLAT LISTING ENTRY
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Item:
    """
    Single entry of a flat repository listing.

    Attributes:
        path: '/'-separated path relative to the repository root.
        kind: File or folder.
        size_bytes: Size of a file in bytes (None for folders or unknown).
        content_id: Opaque handle used to retrieve file content later.
        synthesized: True when the entry was implied by a descendant path
            rather than present in the listing.
    """
    path: str
    kind: ItemKind
    size_bytes: Optional[int] = None
    content_id: Optional[str] = None
    synthesized: bool = False

    @property
    def is_folder(self) -> bool:
        return self.kind is ItemKind.FOLDER

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @classmethod
    def folder(cls, path: str, synthesized: bool = False) -> "Item":
        return cls(path=path, kind=ItemKind.FOLDER, synthesized=synthesized)

    @classmethod
    def file(cls, path: str, size_bytes: Optional[int] = None, content_id: Optional[str] = None) -> "Item":
        return cls(path=path, kind=ItemKind.FILE, size_bytes=size_bytes, content_id=content_id)


def parse_item(raw: Mapping[str, Any]) -> Optional[Item]:
    """
    Convert a raw listing entry into an Item.

    Accepts both the domain vocabulary ('file'/'folder') and the git object
    vocabulary ('blob'/'tree'). Leading and trailing slashes are stripped.

    Args:
        raw: Mapping with at least 'path' and 'kind' (or 'type') keys.

    Returns:
        Optional[Item]: The parsed item, or None when the entry is malformed.
    """
    if not isinstance(raw, Mapping):
        logger.warning(f"Skipping malformed item (not a mapping): {raw!r}")
        return None

    path = raw.get("path")
    kind_raw = raw.get("kind", raw.get("type"))
    if not isinstance(path, str) or not isinstance(kind_raw, str):
        logger.warning(f"Skipping malformed item (missing path or kind): {raw!r}")
        return None

    kind = _KIND_ALIASES.get(kind_raw.strip().lower())
    if kind is None:
        logger.debug(f"Skipping unsupported entry kind '{kind_raw}' at '{path}'")
        return None

    clean_path = path.strip("/")
    if not clean_path or "" in clean_path.split("/"):
        logger.warning(f"Skipping malformed item (invalid path): {path!r}")
        return None

    size = raw.get("size_bytes", raw.get("size"))
    if kind is ItemKind.FILE and size is not None:
        try:
            size = max(0, int(size))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid size {size!r} for '{clean_path}'")
            size = None
    elif kind is ItemKind.FOLDER:
        size = None

    content_id = raw.get("content_id", raw.get("sha")) if kind is ItemKind.FILE else None

    return Item(
        path=clean_path,
        kind=kind,
        size_bytes=size,
        content_id=str(content_id) if content_id is not None else None,
    )


def parse_items(raw_items: Iterable[Any]) -> List[Item]:
    """Parse a raw listing, skipping (and logging) malformed entries."""
    items: List[Item] = []
    skipped = 0
    for raw in raw_items:
        if isinstance(raw, Item):
            items.append(raw)
            continue
        item = parse_item(raw)
        if item is None:
            skipped += 1
            continue
        items.append(item)

    if skipped:
        logger.info(f"Listing parsed with {skipped} skipped entr{'y' if skipped == 1 else 'ies'}.")
    return items

# -----------------------------------------------------------------------------
# HIERARCHY NODES
# -----------------------------------------------------------------------------

@dataclass
class FileNode:
    """Leaf node of the reconstructed hierarchy."""
    item: Item

    @property
    def children(self) -> None:
        return None


@dataclass
class FolderNode:
    """
    Interior node of the reconstructed hierarchy.

    Attributes:
        item: Real folder entry, or a synthesized placeholder.
        children: Child nodes keyed by path segment.
    """
    item: Item
    children: Dict[str, "TreeNode"] = field(default_factory=dict)


TreeNode = Union[FileNode, FolderNode]
Tree = Dict[str, TreeNode]

# Join-key maps shared across subsystems
SelectionMap = Dict[str, bool]
FolderSizeMap = Dict[str, int]
