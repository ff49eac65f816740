from __future__ import annotations

"""
Unit tests for the Tree Renderer.
"""

from repocontext.core.tree.hierarchy import build
from repocontext.core.tree.render import render_tree, sorted_entries
from repocontext.core.tree.sizes import compute_folder_sizes
from repocontext.domain.models import Item, TriState


def _all_checked(_key: str) -> TriState:
    return TriState.CHECKED


def test_render_with_sizes(basic_items) -> None:
    tree = build(basic_items)
    lines = render_tree(tree, _all_checked, compute_folder_sizes(basic_items))

    assert lines == [
        "├── [x] a/ (30 B)",
        "│   ├── [x] b.txt (10 B)",
        "│   └── [x] c.txt (20 B)",
        "└── [x] d.txt (5 B)",
    ]


def test_render_without_sizes(basic_items) -> None:
    tree = build(basic_items)
    lines = render_tree(tree, _all_checked, compute_folder_sizes(basic_items), show_sizes=False)
    assert lines[0] == "├── [x] a/"
    assert lines[-1] == "└── [x] d.txt"


def test_render_markers_reflect_tri_state(basic_items) -> None:
    """Mixed folders, unchecked files and untracked keys use distinct markers."""
    states = {
        "a/": TriState.MIXED,
        "a/b.txt": TriState.CHECKED,
        "a/c.txt": TriState.UNCHECKED,
    }
    lines = render_tree(build(basic_items), states.get, show_sizes=False)

    assert lines == [
        "├── [-] a/",
        "│   ├── [x] b.txt",
        "│   └── [ ] c.txt",
        "└── [?] d.txt",
    ]


def test_folders_listed_before_files() -> None:
    tree = build([Item.file("a.txt"), Item.file("z/inner.txt")])
    assert sorted_entries(tree) == ["z", "a.txt"]

    lines = render_tree(tree, _all_checked, show_sizes=False)
    assert lines[0].endswith("z/")
    assert lines[-1].endswith("a.txt")


def test_render_empty_tree() -> None:
    assert render_tree({}, _all_checked) == []
