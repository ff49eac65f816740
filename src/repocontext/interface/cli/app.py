from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates one headless session: logging bootstrap, settings resolution,
repository listing, selection replay, and result rendering (tree, metrics,
optional context export).
"""

import sys
from typing import List, Optional

from repocontext.core.services.exporter import build_context
from repocontext.core.services.session import RepositoryView
from repocontext.core.tree.render import render_tree
from repocontext.domain.config import debounce_seconds, load_settings
from repocontext.domain.constants import DEFAULT_EXPORT_FILENAME
from repocontext.domain.models import Item
from repocontext.infra.fs import get_selection_db_path, normalize_path, safe_write_text
from repocontext.infra.logging import LoggingConfig, configure_logging, get_default_log_path, get_logger
from repocontext.infra.network import GitHubClient, listing_to_items, parse_repo_url
from repocontext.infra.storage import SelectionStore
from repocontext.interface.cli import args as cli_args

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 failure, 2 invalid input, 130 interrupted).
    """
    args = cli_args.build_parser().parse_args(argv)
    settings = load_settings()

    # 1. Logging bootstrap
    level = "DEBUG" if args.debug else (args.log_level or str(settings.get("log_level", "INFO")))
    configure_logging(LoggingConfig.from_settings({**settings, "log_level": level}, get_default_log_path()))

    # 2. Repository resolution
    ref = parse_repo_url(args.repo_url)
    if ref is None:
        print(f"ERROR: Not a repository URL: {args.repo_url}", file=sys.stderr)
        return 2

    client = GitHubClient(
        token=args.token or settings.get("github_token") or None,
        base_url=args.api_base_url or settings["api_base_url"],
        timeout=float(settings.get("request_timeout", 10)),
    )

    view: Optional[RepositoryView] = None
    try:
        listing = client.fetch_repo_tree(ref)
        if listing is None:
            print(f"ERROR: Could not list repository {ref.slug}. See log for details.", file=sys.stderr)
            return 1

        items = listing_to_items(listing)
        if not items:
            print("Repository appears to be empty or inaccessible.", file=sys.stderr)
            return 1

        # 3. Selection session
        view = RepositoryView(
            args.repo_url,
            SelectionStore(normalize_path(args.db_path, fallback=get_selection_db_path())),
            save_delay=debounce_seconds(settings),
            bytes_per_token=int(settings.get("bytes_per_token", 4)),
        )
        snapshot = view.open(items, truncated=listing.truncated)

        if args.select_all or args.select_none:
            view.set_all(bool(args.select_all))
        for key, value in args.toggles or []:
            result = view.toggle(key, value)
            if not result:
                print(f"WARNING: Unknown key ignored: {key}", file=sys.stderr)

        # 4. Rendering
        if args.tree:
            for line in render_tree(view.snapshot.tree, view.state_of, snapshot.folder_sizes, args.show_sizes):
                print(line)

        metrics = view.metrics()
        print(
            f"Selected: {metrics.count} file(s), {metrics.formatted_size}, "
            f"~{metrics.estimated_tokens:,} tokens"
        )
        if snapshot.truncated:
            print("WARNING: Repository listing is truncated; some files may be missing.", file=sys.stderr)

        # 5. Export
        exit_code = 0
        if args.export_path:
            export_path = normalize_path(args.export_path, fallback=DEFAULT_EXPORT_FILENAME)
            exit_code = _export(view.selected_files(), client, ref.owner, ref.repo, export_path, args.prefix)

        return exit_code

    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return 130

    finally:
        # Pending toggles are persisted even when the session is interrupted
        if view is not None:
            view.close(flush=True)

# -----------------------------------------------------------------------------
# EXPORT
# -----------------------------------------------------------------------------

def _export(
        files: List[Item],
        client: GitHubClient,
        owner: str,
        repo: str,
        path: str,
        prefix: str,
) -> int:
    """Fetch, format and write the selected files; returns an exit code."""
    if not files:
        print("ERROR: No files selected to export.", file=sys.stderr)
        return 1

    def fetch(item: Item) -> Optional[str]:
        if not item.content_id:
            return None
        return client.fetch_blob_content(owner, repo, item.content_id)

    result = build_context(files, fetch, prefix=prefix)
    if not result.ok:
        print(f"ERROR: {result.summary}", file=sys.stderr)
        return 1

    ok, err = safe_write_text(path, result.text + "\n")
    if not ok:
        logger.error(f"Failed to write export to '{path}': {err}")
        print(f"ERROR: Cannot write '{path}': {err}", file=sys.stderr)
        return 1

    print(result.summary)
    print(f"Written to: {path}")
    return 0
