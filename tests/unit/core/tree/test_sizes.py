from __future__ import annotations

"""
Unit tests for the Folder Size Aggregator.

Verifies:
1. Totals for explicit and implicit folders.
2. Tolerance of dangling child references and kind conflicts.
3. Deep hierarchies do not rely on recursion.
4. Every total equals the sum of its descendant files.
"""

from repocontext.core.tree.pathkeys import descendants_of
from repocontext.core.tree.sizes import aggregate, compute_folder_sizes
from repocontext.domain.models import Item


def test_scenario_implicit_folder_total() -> None:
    """'a/' is only implied by its files and still gets a total."""
    items = [
        Item.file("a/b.txt", size_bytes=10),
        Item.file("a/c.txt", size_bytes=20),
        Item.file("d.txt", size_bytes=5),
    ]
    assert compute_folder_sizes(items) == {"a/": 30}


def test_nested_totals(nested_items) -> None:
    sizes = compute_folder_sizes(nested_items)

    assert sizes["src/core/"] == 150
    assert sizes["src/"] == 175
    assert sizes["docs/"] == 7
    assert sizes["empty/"] == 0
    assert set(sizes) == {"src/", "src/core/", "docs/", "empty/"}


def test_unknown_file_size_counts_as_zero() -> None:
    items = [Item.file("a/x.bin"), Item.file("a/y.bin", size_bytes=4)]
    assert compute_folder_sizes(items) == {"a/": 4}


def test_aggregate_missing_child_counts_as_zero() -> None:
    """A dangling child reference contributes nothing instead of failing."""
    children = {"x/": ["x/gone.txt", "x/here.txt"]}
    file_size = {"x/here.txt": 3}
    assert aggregate(file_size, children) == {"x/": 3}


def test_aggregate_computes_each_folder_once() -> None:
    """Shared subtrees resolve to the same memoized value for every ancestor."""
    children = {
        "a/": ["a/b/"],
        "a/b/": ["a/b/c/"],
        "a/b/c/": ["a/b/c/f"],
    }
    sizes = aggregate({"a/b/c/f": 9}, children)
    assert sizes == {"a/": 9, "a/b/": 9, "a/b/c/": 9}


def test_conflicting_kinds_ignore_file_entry() -> None:
    """A path that is both file and folder is sized as a folder."""
    items = [Item.file("a", size_bytes=100), Item.file("a/b.txt", size_bytes=1)]
    assert compute_folder_sizes(items) == {"a/": 1}


def test_deep_hierarchy_without_recursion_limit() -> None:
    depth = 3000
    folder = "/".join(f"d{i}" for i in range(depth))
    items = [Item.file(f"{folder}/leaf.txt", size_bytes=42)]

    sizes = compute_folder_sizes(items)

    assert len(sizes) == depth
    assert sizes["d0/"] == 42
    assert sizes[f"{folder}/"] == 42


def test_totals_equal_descendant_file_sums(random_listing) -> None:
    """Property: every folder total is the sum of the files below it."""
    for seed in range(25):
        items = random_listing(seed)
        sizes = compute_folder_sizes(items)
        by_key = {i.path: (i.size_bytes or 0) for i in items if not i.is_folder}

        for folder, total in sizes.items():
            expected = sum(by_key.get(k, 0) for k in descendants_of(folder, items))
            assert total == expected, f"seed={seed} folder={folder}"


def test_empty_listing() -> None:
    assert compute_folder_sizes([]) == {}
