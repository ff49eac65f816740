from __future__ import annotations

"""
Context Export Service.

Concatenates the contents of the selected files into a single text block
suitable for pasting into an LLM prompt. Individual retrieval failures are
recorded and skipped; they never abort the export.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from repocontext.domain.constants import EXPORT_FILE_HEADER
from repocontext.domain.models import Item

logger = logging.getLogger(__name__)

ContentFetcher = Callable[[Item], Optional[str]]


@dataclass(frozen=True)
class ExportFailure:
    """
    Retrieval failure of a single file.

    Attributes:
        path: Path of the file that could not be exported.
        error: Descriptive error message.
    """
    path: str
    error: str


@dataclass
class ExportResult:
    """
    Outcome of a context export.

    Attributes:
        text: Formatted context (prefix plus file sections).
        copied: Number of files whose content was included.
        failures: Files skipped because retrieval failed.
    """
    text: str = ""
    copied: int = 0
    failures: List[ExportFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.copied > 0

    @property
    def summary(self) -> str:
        if not self.copied:
            return f"Export failed: no content retrieved for {len(self.failures)} selected file(s)."
        msg = f"Context for {self.copied} file(s) exported."
        if self.failures:
            msg += f" ({len(self.failures)} failed)"
        return msg


def build_context(
        files: Iterable[Item],
        fetch: ContentFetcher,
        prefix: str = "",
) -> ExportResult:
    """
    Fetch and format the contents of the given files.

    Files are emitted in path order. NUL bytes are stripped from contents
    and trailing whitespace is removed from the final text.

    Args:
        files: Selected file items.
        fetch: Callable returning a file's content (None on failure).
        prefix: Optional text placed before the first file section.

    Returns:
        ExportResult: Formatted text plus success and failure counts.
    """
    ordered = sorted((f for f in files if not f.is_folder), key=lambda i: i.path)
    result = ExportResult()
    if not ordered:
        logger.warning("No files selected to export.")
        return result

    start = time.perf_counter()
    sections: List[str] = [prefix] if prefix else []

    for item in ordered:
        try:
            content = fetch(item)
        except Exception as e:
            logger.error(f"Failed to retrieve '{item.path}': {e}")
            result.failures.append(ExportFailure(path=item.path, error=str(e)))
            continue

        if content is None:
            logger.warning(f"Skipping '{item.path}': content unavailable.")
            result.failures.append(ExportFailure(path=item.path, error="Content unavailable"))
            continue

        sections.append(EXPORT_FILE_HEADER.format(path=item.path) + "\n")
        sections.append(content.replace("\0", "") + "\n\n")
        result.copied += 1

    result.text = "".join(sections).rstrip()
    logger.info(
        f"Export finished in {time.perf_counter() - start:.2f}s: "
        f"{result.copied} copied, {len(result.failures)} failed."
    )
    return result
