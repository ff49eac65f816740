from __future__ import annotations

"""
CLI Argument Definition.

Defines the command-line schema of the repocontext tool. Selection changes
are collected in command-line order so they replay exactly like a sequence
of checkbox clicks.
"""

import argparse
from typing import Tuple

from repocontext.domain import constants as const

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def _select(key: str) -> Tuple[str, bool]:
    return key, True


def _deselect(key: str) -> Tuple[str, bool]:
    return key, False


def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the repocontext CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="repocontext",
        description="Select files of a GitHub repository and export them as LLM context.",
    )

    p.add_argument("repo_url", help="Repository URL (https://github.com/owner/repo[/tree/ref]).")

    # --- Selection ---
    p.add_argument(
        "--select",
        dest="toggles",
        action="append",
        type=_select,
        default=[],
        metavar="KEY",
        help="Check a file ('a/b.py') or folder ('a/') key. Repeatable.",
    )
    p.add_argument(
        "--deselect",
        dest="toggles",
        action="append",
        type=_deselect,
        metavar="KEY",
        help="Uncheck a file or folder key. Repeatable.",
    )
    group = p.add_mutually_exclusive_group()
    group.add_argument("--all", dest="select_all", action="store_true", help="Check everything first.")
    group.add_argument("--none", dest="select_none", action="store_true", help="Uncheck everything first.")

    # --- Output ---
    p.add_argument("--tree", action="store_true", help="Print the selection tree.")
    p.add_argument("--no-sizes", dest="show_sizes", action="store_false", help="Hide sizes in the tree.")
    p.add_argument("--export", dest="export_path", default=None, metavar="FILE",
                   help="Write the selected files' contents to FILE.")
    p.add_argument("--prefix", default="", help="Text placed before the exported file sections.")

    # --- Access and storage ---
    p.add_argument("--token", default=None, help="GitHub token (overrides settings and GITHUB_TOKEN).")
    p.add_argument("--db", dest="db_path", default=None, help="Selection database path.")
    p.add_argument("--api-url", dest="api_base_url", default=None,
                   help=f"API base URL (default: {const.GITHUB_API_BASE_URL}).")

    # --- Diagnostics ---
    p.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (overrides settings).",
    )
    p.add_argument("--debug", action="store_true", help="Shortcut for --log-level DEBUG.")

    return p
