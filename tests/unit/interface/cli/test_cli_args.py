from __future__ import annotations

"""
Unit tests for CLI argument parsing.
"""

import pytest

from repocontext.interface.cli.args import build_parser


def test_defaults() -> None:
    args = build_parser().parse_args(["https://github.com/o/r"])

    assert args.repo_url == "https://github.com/o/r"
    assert args.toggles == []
    assert args.select_all is False
    assert args.select_none is False
    assert args.tree is False
    assert args.show_sizes is True
    assert args.export_path is None
    assert args.prefix == ""
    assert args.log_level is None
    assert args.debug is False


def test_select_and_deselect_keep_command_line_order() -> None:
    """Toggles replay in the order given, mixing both flags."""
    args = build_parser().parse_args([
        "o/r",
        "--deselect", "src/",
        "--select", "src/main.py",
        "--deselect", "README.md",
    ])

    assert args.toggles == [("src/", False), ("src/main.py", True), ("README.md", False)]


def test_output_and_access_flags() -> None:
    args = build_parser().parse_args([
        "o/r", "--tree", "--no-sizes", "--export", "out.txt", "--prefix", "Hi",
        "--token", "t0k", "--db", "sel.db", "--api-url", "http://localhost:9000",
        "--log-level", "warning",
    ])

    assert args.tree is True
    assert args.show_sizes is False
    assert args.export_path == "out.txt"
    assert args.prefix == "Hi"
    assert args.token == "t0k"
    assert args.db_path == "sel.db"
    assert args.api_base_url == "http://localhost:9000"
    assert args.log_level == "WARNING"


def test_all_and_none_are_mutually_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["o/r", "--all", "--none"])


def test_invalid_log_level_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["o/r", "--log-level", "verbose"])


def test_repo_url_is_required() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
