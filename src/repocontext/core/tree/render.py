from __future__ import annotations

"""
Tree Renderer.

Converts the nested Tree model into ASCII lines with selection markers
and folder sizes. Folders are listed before files, alphabetically within
each group.
"""

from typing import Callable, List, Mapping, Optional

from repocontext.core.selection.metrics import format_bytes
from repocontext.core.tree.pathkeys import key_of
from repocontext.domain.models import FolderNode, Tree, TriState

_MARKERS = {
    TriState.CHECKED: "[x]",
    TriState.UNCHECKED: "[ ]",
    TriState.MIXED: "[-]",
}

StateLookup = Callable[[str], Optional[TriState]]

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def render_tree(
        tree: Tree,
        state_of: StateLookup,
        folder_sizes: Optional[Mapping[str, int]] = None,
        show_sizes: bool = True,
) -> List[str]:
    """
    Render a Tree as a list of lines.

    Args:
        tree: Root level of the hierarchy.
        state_of: Tri-state lookup by path key.
        folder_sizes: Folder key -> aggregated size.
        show_sizes: Append sizes to entries.

    Returns:
        List[str]: Rendered lines.
    """
    lines: List[str] = []
    _render_level(tree, lines, "", state_of, folder_sizes or {}, show_sizes)
    return lines


def sorted_entries(level: Tree) -> List[str]:
    """Return segment names with folders first, then alphabetical."""
    return sorted(level, key=lambda name: (not isinstance(level[name], FolderNode), name))

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _render_level(
        level: Tree,
        lines: List[str],
        prefix: str,
        state_of: StateLookup,
        folder_sizes: Mapping[str, int],
        show_sizes: bool,
) -> None:
    entries = sorted_entries(level)
    total = len(entries)

    for i, name in enumerate(entries):
        is_last = (i == total - 1)
        connector = "└── " if is_last else "├── "

        node = level[name]
        key = key_of(node.item)
        marker = _MARKERS.get(state_of(key), "[?]")

        if isinstance(node, FolderNode):
            size = folder_sizes.get(key)
            suffix = f" ({format_bytes(size)})" if show_sizes and size is not None else ""
            lines.append(f"{prefix}{connector}{marker} {name}/{suffix}")
            _render_level(
                node.children,
                lines,
                prefix + ("    " if is_last else "│   "),
                state_of,
                folder_sizes,
                show_sizes,
            )
            continue

        size = node.item.size_bytes
        suffix = f" ({format_bytes(size)})" if show_sizes and size is not None else ""
        lines.append(f"{prefix}{connector}{marker} {name}{suffix}")
