from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared listings used across the tree, selection and session tests.
"""

import os
import random
import sys
from typing import List

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from repocontext.domain.models import Item  # noqa: E402


# -----------------------------------------------------------------------------
# Listing Builders
# -----------------------------------------------------------------------------
def _random_listing(seed: int, max_files: int = 40) -> List[Item]:
    """
    Generate a deterministic pseudo-random listing.

    Only some folders are listed explicitly; the rest are implied by paths.
    """
    rng = random.Random(seed)
    dirs = ["src", "src/core", "src/core/deep", "src/ui", "docs", "tests", "tests/unit", "empty"]
    items: List[Item] = []
    seen = set()

    for d in dirs:
        if rng.random() < 0.5 or d == "empty":
            items.append(Item.folder(d))

    for i in range(rng.randint(1, max_files)):
        folder = rng.choice(dirs + [""])
        if folder == "empty":
            continue
        path = f"{folder}/f{i}.txt" if folder else f"f{i}.txt"
        if path in seen:
            continue
        seen.add(path)
        items.append(Item.file(path, size_bytes=rng.randint(0, 5000), content_id=f"sha{i}"))

    rng.shuffle(items)
    return items


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def random_listing():
    """Factory fixture producing seeded pseudo-random listings."""
    return _random_listing


@pytest.fixture
def basic_items() -> List[Item]:
    """
    Listing with one explicit folder and a top-level file.

    Structure:
      a/
        b.txt (10 bytes)
        c.txt (20 bytes)
      d.txt (5 bytes)
    """
    return [
        Item.folder("a"),
        Item.file("a/b.txt", size_bytes=10, content_id="sha-b"),
        Item.file("a/c.txt", size_bytes=20, content_id="sha-c"),
        Item.file("d.txt", size_bytes=5, content_id="sha-d"),
    ]


@pytest.fixture
def nested_items() -> List[Item]:
    """
    Deeper listing where 'src/' and 'src/core/' are only implied.

    Structure:
      src/
        core/
          engine.py (100)
          util.py (50)
        main.py (25)
      docs/
        readme.md (7)
      empty/
    """
    return [
        Item.file("src/core/engine.py", size_bytes=100, content_id="s1"),
        Item.file("src/core/util.py", size_bytes=50, content_id="s2"),
        Item.file("src/main.py", size_bytes=25, content_id="s3"),
        Item.folder("docs"),
        Item.file("docs/readme.md", size_bytes=7, content_id="s4"),
        Item.folder("empty"),
    ]
