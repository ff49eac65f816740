from __future__ import annotations

"""
Network Communication Infrastructure.

Facade over the GitHub repository lister.
"""

from repocontext.infra.network.github_client import (
    GitHubClient,
    RepoListing,
    RepoRef,
    listing_to_items,
    parse_repo_url,
)

__all__ = [
    "GitHubClient",
    "RepoListing",
    "RepoRef",
    "listing_to_items",
    "parse_repo_url",
]
