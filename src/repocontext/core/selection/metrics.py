from __future__ import annotations

"""
Selection Metrics.

Summarizes the current selection for status displays: number of selected
files, their total size and a character-density token estimate.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from repocontext.domain.constants import BYTES_PER_TOKEN_ESTIMATE
from repocontext.domain.models import Item

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


@dataclass(frozen=True)
class SelectionMetrics:
    """
    Aggregated figures for the selected files.

    Attributes:
        count: Number of selected files.
        size_bytes: Sum of the selected files' sizes.
        estimated_tokens: Token estimate derived from the byte total.
    """
    count: int = 0
    size_bytes: int = 0
    estimated_tokens: int = 0

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.size_bytes)

    @property
    def has_selection(self) -> bool:
        return self.count > 0


def compute_metrics(
        items: Iterable[Item],
        selection: Mapping[str, bool],
        bytes_per_token: int = BYTES_PER_TOKEN_ESTIMATE,
) -> SelectionMetrics:
    """
    Count and size the selected files of a listing.

    Args:
        items: Listing entries; folders are ignored.
        selection: Current selection map.
        bytes_per_token: Heuristic density used for the token estimate.

    Returns:
        SelectionMetrics: Totals for the selected files.
    """
    count = 0
    size = 0
    for item in items:
        if item.is_folder or not selection.get(item.path):
            continue
        count += 1
        size += item.size_bytes or 0

    return SelectionMetrics(
        count=count,
        size_bytes=size,
        estimated_tokens=estimate_tokens(size, bytes_per_token),
    )


def estimate_tokens(size_bytes: int, bytes_per_token: int = BYTES_PER_TOKEN_ESTIMATE) -> int:
    if size_bytes <= 0:
        return 0
    return math.ceil(size_bytes / max(1, bytes_per_token))


def format_bytes(size_bytes: Optional[int], decimals: int = 2) -> str:
    """
    Render a byte count with a binary (1024) unit suffix.

    Args:
        size_bytes: Raw byte count; None or non-positive renders as '0 B'.
        decimals: Maximum number of decimals kept (trailing zeros dropped).

    Returns:
        str: Human readable size, e.g. '1.5 KB'.
    """
    if size_bytes is None or size_bytes <= 0:
        return "0 B"

    index = 0
    while size_bytes >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1

    text = f"{size_bytes / (1024 ** index):.{max(0, decimals)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
