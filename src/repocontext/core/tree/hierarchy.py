from __future__ import annotations

"""
Hierarchy Builder.

Reconstructs the nested repository tree from a flat listing. Folders that
are only implied by descendant paths are synthesized as placeholders and
later reconciled with the real entry if the listing contains one. An arena
view (flat key -> item map plus children index) is derived from the same
tree for consumers that need constant-time parent/child lookups.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from repocontext.core.tree.pathkeys import SEPARATOR, ROOT_KEY, key_of, split_segments
from repocontext.domain.models import FileNode, FolderNode, Item, Tree, TreeNode

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def build(items: Iterable[Item]) -> Tree:
    """
    Build the nested Tree model from a flat listing.

    Items are processed in path order so that two invocations over the same
    listing produce identical trees. Folder-before-file ordering is left to
    the renderer.

    Args:
        items: Flat listing entries.

    Returns:
        Tree: Root level mapping of path segment to node.
    """
    tree: Tree = {}

    for item in sorted(items, key=lambda i: i.path):
        segments = split_segments(item.path)
        if not segments:
            logger.warning(f"Skipping item with empty path: {item!r}")
            continue

        level = tree
        for depth, segment in enumerate(segments):
            if depth == len(segments) - 1:
                level[segment] = _place_item(level.get(segment), item)
                break

            node = _ensure_folder(level, segment, SEPARATOR.join(segments[:depth + 1]), item.path)
            level = node.children

    return tree


@dataclass
class HierarchyIndex:
    """
    Arena form of the hierarchy.

    Attributes:
        nodes: Every real or synthesized item keyed by its path key.
        children: Direct child keys per folder key, in segment order.
            The implicit root is stored under ROOT_KEY.
        roots: Keys of top-level entries.
    """
    nodes: Dict[str, Item] = field(default_factory=dict)
    children: Dict[str, List[str]] = field(default_factory=dict)
    roots: List[str] = field(default_factory=list)

    def __contains__(self, key: object) -> bool:
        return key in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def items(self) -> List[Item]:
        return list(self.nodes.values())

    def children_of(self, key: str) -> List[str]:
        return self.children.get(key, [])

    def file_items(self) -> List[Item]:
        return [item for item in self.nodes.values() if not item.is_folder]


def build_index(items: Iterable[Item]) -> Tuple[Tree, HierarchyIndex]:
    """
    Build the Tree and derive its arena index in one call.

    Returns:
        Tuple[Tree, HierarchyIndex]: Nested tree and flat index.
    """
    tree = build(items)
    return tree, index_tree(tree)


def index_tree(tree: Tree) -> HierarchyIndex:
    """Flatten a Tree into a HierarchyIndex using an explicit stack."""
    index = HierarchyIndex()
    index.children[ROOT_KEY] = index.roots

    stack: List[Tuple[Tree, List[str]]] = [(tree, index.roots)]
    while stack:
        level, sibling_keys = stack.pop()
        for segment in sorted(level):
            node = level[segment]
            key = key_of(node.item)
            index.nodes[key] = node.item
            sibling_keys.append(key)
            if isinstance(node, FolderNode):
                child_keys: List[str] = []
                index.children[key] = child_keys
                stack.append((node.children, child_keys))

    return index


def iter_nodes(tree: Tree) -> Iterable[Tuple[str, TreeNode]]:
    """Yield (key, node) pairs depth-first in segment order."""
    for segment in sorted(tree):
        node = tree[segment]
        yield key_of(node.item), node
        if isinstance(node, FolderNode):
            yield from iter_nodes(node.children)

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _ensure_folder(level: Tree, segment: str, folder_path: str, origin: str) -> FolderNode:
    """Return the folder node for an intermediate segment, creating or converting it."""
    node: Optional[TreeNode] = level.get(segment)

    if node is None:
        node = FolderNode(item=Item.folder(folder_path, synthesized=True))
        level[segment] = node
        logger.debug(f"Synthesized folder '{folder_path}' implied by '{origin}'")
    elif isinstance(node, FileNode):
        logger.warning(
            f"Conflicting kinds at '{folder_path}': listed as file but hosts '{origin}'. "
            f"Keeping folder interpretation."
        )
        node = FolderNode(item=Item.folder(folder_path, synthesized=True))
        level[segment] = node

    return node


def _place_item(existing: Optional[TreeNode], item: Item) -> TreeNode:
    """Reconcile a real item with whatever node already occupies its path."""
    if existing is None:
        return FolderNode(item=item) if item.is_folder else FileNode(item=item)

    if isinstance(existing, FolderNode):
        if item.is_folder:
            # Placeholder becomes real, children are preserved
            existing.item = item
            return existing
        logger.warning(
            f"Conflicting kinds at '{item.path}': file entry collides with a folder. "
            f"Keeping folder interpretation."
        )
        return existing

    if item.is_folder:
        logger.warning(
            f"Conflicting kinds at '{item.path}': folder entry collides with a file. "
            f"Keeping folder interpretation."
        )
        return FolderNode(item=item)

    logger.debug(f"Duplicate file entry at '{item.path}', keeping the later one.")
    return FileNode(item=item)
