from __future__ import annotations

"""
End-to-End (E2E) CLI Tests.

Verifies the external behavior of the command line tool: argument
handling, exit codes, stream output and file side effects (selection
database and exported context). Subprocess tests exercise the real entry
point; in-process tests replace the GitHub client with a fake listing.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock, patch

import pytest

from repocontext.domain.config import get_default_settings
from repocontext.infra.logging import shutdown_logging
from repocontext.infra.network import RepoListing
from repocontext.interface.cli.app import main

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SRC_DIR = PROJECT_ROOT / "src"
REPO_URL = "https://github.com/owner/repo"


def run_cli(args: List[str], home: Path) -> subprocess.CompletedProcess[str]:
    """
    Execute the CLI in a separate process.

    Injects the 'src' directory into PYTHONPATH and points the user data
    directory at a temporary home so the real one is never touched.

    Args:
        args: Command line arguments (excluding the interpreter and module).
        home: Directory used as HOME / LOCALAPPDATA.

    Returns:
        subprocess.CompletedProcess: Result with returncode, stdout and stderr.
    """
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC_DIR) + os.pathsep + env.get("PYTHONPATH", "")
    env["HOME"] = str(home)
    env["LOCALAPPDATA"] = str(home)
    env.pop("GITHUB_TOKEN", None)

    return subprocess.run(
        [sys.executable, "-m", "repocontext.main"] + args,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
    )

# -----------------------------------------------------------------------------
# SUBPROCESS TESTS
# -----------------------------------------------------------------------------

def test_help_exits_cleanly(tmp_path: Path) -> None:
    result = run_cli(["--help"], tmp_path)

    assert result.returncode == 0
    assert "--select" in result.stdout
    assert "--export" in result.stdout


def test_invalid_url_exit_code(tmp_path: Path) -> None:
    result = run_cli(["not-a-url"], tmp_path)

    assert result.returncode == 2
    assert "Not a repository URL" in result.stderr

# -----------------------------------------------------------------------------
# IN-PROCESS TESTS (FAKE REPOSITORY)
# -----------------------------------------------------------------------------

ENTRIES: List[Dict[str, Any]] = [
    {"path": "src", "type": "tree", "sha": "t1"},
    {"path": "src/app.py", "type": "blob", "size": 120, "sha": "b1"},
    {"path": "src/util.py", "type": "blob", "size": 80, "sha": "b3"},
    {"path": "README.md", "type": "blob", "size": 30, "sha": "b2"},
]

BLOBS = {"b1": "print(1)\n", "b2": "# readme", "b3": "pass\n"}


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    yield
    shutdown_logging()


@pytest.fixture
def fake_client() -> MagicMock:
    client = MagicMock()
    client.fetch_repo_tree.return_value = RepoListing(entries=ENTRIES, truncated=False, ref="main")

    def blob(owner: str, repo: str, sha: str) -> Optional[str]:
        return BLOBS.get(sha)

    client.fetch_blob_content.side_effect = blob
    return client


@pytest.fixture
def run_main(tmp_path: Path, fake_client: MagicMock):
    """Invoke the CLI controller with isolated settings, logs and database."""
    db_path = str(tmp_path / "selections.db")

    def _run(*extra: str) -> int:
        with patch("repocontext.interface.cli.app.GitHubClient", return_value=fake_client), \
                patch("repocontext.interface.cli.app.load_settings", return_value=get_default_settings()), \
                patch("repocontext.interface.cli.app.get_default_log_path", return_value=str(tmp_path / "app.log")):
            return main([REPO_URL, "--db", db_path, *extra])

    return _run


def test_toggles_tree_and_metrics(run_main, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_main("--deselect", "src/", "--select", "src/app.py", "--tree")
    out = capsys.readouterr().out.splitlines()

    assert code == 0
    assert out[:4] == [
        "├── [-] src/ (200 B)",
        "│   ├── [x] app.py (120 B)",
        "│   └── [ ] util.py (80 B)",
        "└── [x] README.md (30 B)",
    ]
    assert "Selected: 2 file(s), 150 B, ~38 tokens" in out


def test_selection_persists_between_runs(run_main, capsys: pytest.CaptureFixture[str]) -> None:
    run_main("--deselect", "src/util.py")
    capsys.readouterr()

    run_main()

    assert "Selected: 2 file(s), 150 B, ~38 tokens" in capsys.readouterr().out


def test_export_writes_context(run_main, tmp_path: Path, fake_client: MagicMock) -> None:
    target = tmp_path / "export" / "context.txt"

    code = run_main("--deselect", "src/util.py", "--export", str(target))

    assert code == 0
    assert target.read_text(encoding="utf-8") == (
        "--- File: README.md ---\n# readme\n\n"
        "--- File: src/app.py ---\nprint(1)\n"
    )
    assert fake_client.fetch_blob_content.call_count == 2


def test_export_with_nothing_selected_fails(run_main, tmp_path: Path, capsys) -> None:
    code = run_main("--none", "--export", str(tmp_path / "out.txt"))

    assert code == 1
    assert "No files selected" in capsys.readouterr().err
    assert not (tmp_path / "out.txt").exists()


def test_unknown_key_warns_but_succeeds(run_main, capsys: pytest.CaptureFixture[str]) -> None:
    code = run_main("--select", "missing.txt")

    assert code == 0
    assert "Unknown key ignored: missing.txt" in capsys.readouterr().err


def test_listing_failure_exit_code(run_main, fake_client: MagicMock, capsys) -> None:
    fake_client.fetch_repo_tree.return_value = None

    assert run_main() == 1
    assert "Could not list repository owner/repo" in capsys.readouterr().err


def test_empty_repository_exit_code(run_main, fake_client: MagicMock) -> None:
    fake_client.fetch_repo_tree.return_value = RepoListing(entries=[], ref="main")
    assert run_main() == 1


def test_truncated_listing_warns(run_main, fake_client: MagicMock, capsys) -> None:
    fake_client.fetch_repo_tree.return_value = RepoListing(entries=ENTRIES, truncated=True, ref="main")

    assert run_main() == 0
    assert "truncated" in capsys.readouterr().err


def test_interrupted_export_still_persists_selection(
        run_main, tmp_path: Path, fake_client: MagicMock, capsys: pytest.CaptureFixture[str]
) -> None:
    """Toggles applied before a Ctrl+C are saved by the session cleanup."""
    fake_client.fetch_blob_content.side_effect = KeyboardInterrupt

    code = run_main("--deselect", "src/util.py", "--export", str(tmp_path / "out.txt"))

    assert code == 130
    assert "Interrupted." in capsys.readouterr().err

    run_main()
    assert "Selected: 2 file(s), 150 B, ~38 tokens" in capsys.readouterr().out

# -----------------------------------------------------------------------------
# PATH HANDLING
# -----------------------------------------------------------------------------

def test_export_path_expands_environment_variables(
        run_main, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("REPOCONTEXT_TEST_OUT", str(tmp_path / "expanded"))

    code = run_main("--export", os.path.join("$REPOCONTEXT_TEST_OUT", "context.txt"))

    assert code == 0
    assert (tmp_path / "expanded" / "context.txt").exists()


def test_db_path_expands_environment_variables(
        run_main, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("REPOCONTEXT_TEST_DB", str(tmp_path / "dbdir"))

    code = run_main("--db", os.path.join("$REPOCONTEXT_TEST_DB", "selections.db"))

    assert code == 0
    assert (tmp_path / "dbdir" / "selections.db").exists()
