from __future__ import annotations

from typing import Dict, Optional

from repocontext.domain import constants as const

USER_AGENT = f"RepoContext-Client/{const.APP_VERSION}"
DEFAULT_TIMEOUT = const.REQUEST_TIMEOUT


def build_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Assemble GitHub API request headers, with bearer auth when a token is set."""
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": const.GITHUB_ACCEPT_HEADER,
        "X-GitHub-Api-Version": const.GITHUB_API_VERSION,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
