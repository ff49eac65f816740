from __future__ import annotations

"""
GitHub Repository Lister.

Resolves repository references from page URLs and retrieves the recursive
file listing and blob contents through the GitHub REST API. Failures are
logged and reported as None; callers decide how to surface them.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import requests

from repocontext.domain import constants as const
from repocontext.domain.models import Item, parse_items
from repocontext.infra.network.common import DEFAULT_TIMEOUT, build_headers

logger = logging.getLogger(__name__)

_REF_MARKERS = ("tree", "blob", "commit")

# -----------------------------------------------------------------------------
# MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RepoRef:
    """
    Repository coordinates parsed from a URL.

    Attributes:
        owner: Account or organization name.
        repo: Repository name.
        ref: Branch, tag or commit; None means the default branch.
    """
    owner: str
    repo: str
    ref: Optional[str] = None

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class RepoListing:
    """
    Raw recursive listing of a repository.

    Attributes:
        entries: Git tree entries as returned by the API.
        truncated: True when the API cut the listing short.
        ref: Ref actually used for the listing.
    """
    entries: List[Dict[str, Any]] = field(default_factory=list)
    truncated: bool = False
    ref: str = ""

# -----------------------------------------------------------------------------
# URL PARSING
# -----------------------------------------------------------------------------

def parse_repo_url(repo_url: str) -> Optional[RepoRef]:
    """
    Extract owner, repository and optional ref from a GitHub page URL.

    Handles '/tree/<ref>', '/blob/<ref>/...', '/commit/<sha>' and
    '/releases/tag/<tag>' forms.

    Args:
        repo_url: Repository page URL.

    Returns:
        Optional[RepoRef]: Parsed coordinates, or None if the URL is unusable.
    """
    try:
        parts = urlsplit((repo_url or "").strip())
    except ValueError as e:
        logger.error(f"Invalid repository URL {repo_url!r}: {e}")
        return None

    segments = [s for s in parts.path.split("/") if s]
    if not parts.netloc or len(segments) < 2:
        logger.error(f"Could not parse owner/repo from URL: {repo_url!r}")
        return None

    owner, repo = segments[0], segments[1]
    if repo.endswith(".git"):
        repo = repo[:-4]

    ref: Optional[str] = None
    if len(segments) > 3 and segments[2] in _REF_MARKERS:
        ref = segments[3]
    elif len(segments) > 4 and segments[2] == "releases" and segments[3] == "tag":
        ref = segments[4]

    logger.debug(f"Parsed repository {owner}/{repo} (ref: {ref or 'default'})")
    return RepoRef(owner=owner, repo=repo, ref=ref)

# -----------------------------------------------------------------------------
# API CLIENT
# -----------------------------------------------------------------------------

class GitHubClient:
    """
    Minimal GitHub REST client for repository listings and blobs.
    """

    def __init__(
            self,
            token: Optional[str] = None,
            base_url: str = const.GITHUB_API_BASE_URL,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._headers = build_headers(token)
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def fetch_default_branch(self, owner: str, repo: str) -> Optional[str]:
        """Return the default branch name, or None on failure."""
        data = self._get_json(f"/repos/{owner}/{repo}")
        if data is None:
            return None

        branch = data.get("default_branch")
        if not branch:
            logger.error(f"Default branch missing in repository info for {owner}/{repo}")
            return None
        return str(branch)

    def fetch_repo_tree(self, ref: RepoRef) -> Optional[RepoListing]:
        """
        Retrieve the recursive listing of a repository.

        A ref that resolves to a commit object is followed to its tree.

        Args:
            ref: Repository coordinates.

        Returns:
            Optional[RepoListing]: Listing with truncation flag, or None on failure.
        """
        ref_to_use = ref.ref or self.fetch_default_branch(ref.owner, ref.repo)
        if not ref_to_use:
            return None

        logger.info(f"Fetching repository tree for {ref.slug} (ref: {ref_to_use})")
        data = self._get_json(f"/repos/{ref.owner}/{ref.repo}/git/trees/{ref_to_use}", recursive=1)
        if data is None:
            return None

        if not isinstance(data.get("tree"), list):
            commit_tree = data.get("tree") if isinstance(data.get("tree"), dict) else None
            tree_sha = commit_tree.get("sha") if commit_tree else None
            if not tree_sha:
                logger.error(f"Unexpected tree payload for {ref.slug} (ref: {ref_to_use})")
                return None

            logger.warning(f"Ref '{ref_to_use}' points to a commit; following its tree {tree_sha[:8]}")
            data = self._get_json(f"/repos/{ref.owner}/{ref.repo}/git/trees/{tree_sha}", recursive=1)
            if data is None or not isinstance(data.get("tree"), list):
                logger.error(f"Invalid tree payload after commit lookup for {ref.slug}")
                return None

        listing = RepoListing(
            entries=data["tree"],
            truncated=bool(data.get("truncated")),
            ref=ref_to_use,
        )
        if listing.truncated:
            logger.warning(f"Listing for {ref.slug} was truncated by the API; some files are missing.")

        logger.info(f"Fetched {len(listing.entries)} entries for {ref.slug} (truncated: {listing.truncated})")
        return listing

    def fetch_blob_content(self, owner: str, repo: str, sha: str) -> Optional[str]:
        """
        Retrieve and decode a file blob.

        Args:
            owner: Repository owner.
            repo: Repository name.
            sha: Blob identifier (the item's content_id).

        Returns:
            Optional[str]: UTF-8 decoded content, or None on failure.
        """
        data = self._get_json(f"/repos/{owner}/{repo}/git/blobs/{sha}")
        if data is None:
            return None

        content = data.get("content")
        if content is None or data.get("encoding") != "base64":
            logger.error(f"Unsupported blob payload for {sha[:8]} (encoding: {data.get('encoding')})")
            return None

        try:
            raw = base64.b64decode(content)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Failed to decode blob {sha[:8]}: {e}")
            return None
        return raw.decode("utf-8", errors="replace")

    def _get_json(self, path: str, **params: Any) -> Optional[Dict[str, Any]]:
        url = f"{self._base_url}{path}"
        try:
            response = requests.get(url, headers=self._headers, params=params or None, timeout=self._timeout)
            logger.debug(f"GET {url} -> {response.status_code}")
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout:
            logger.warning(f"GitHub API request timed out after {self._timeout}s: {url}")
            return None
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub API request failed for {url}: {e}")
            return None
        except ValueError as e:
            logger.error(f"GitHub API returned invalid JSON for {url}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"GitHub API returned an unexpected payload for {url}")
            return None
        return data


def listing_to_items(listing: RepoListing) -> List[Item]:
    """Convert raw git tree entries into Items (blobs and trees only)."""
    return parse_items(
        e for e in listing.entries
        if isinstance(e, dict) and e.get("type") in ("blob", "tree")
    )
