from __future__ import annotations

"""
Domain Constants.

Application-wide identifiers, remote endpoints and tuning defaults shared
by the selection core, the persistence layer and the repository lister.
"""

APP_NAME = "RepoContext"
APP_VERSION = "1.0.0"
CURRENT_CONFIG_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# SELECTION AND PERSISTENCE
# -----------------------------------------------------------------------------
SAVE_DEBOUNCE_MS = 250
STORAGE_KEY_PREFIX = "selectionState"
DEFAULT_REPO_HOST = "github.com"

# Heuristic density used for token estimates (characters per token)
BYTES_PER_TOKEN_ESTIMATE = 4

# -----------------------------------------------------------------------------
# GITHUB API
# -----------------------------------------------------------------------------
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
REQUEST_TIMEOUT = 10

# -----------------------------------------------------------------------------
# EXPORT FORMAT
# -----------------------------------------------------------------------------
EXPORT_FILE_HEADER = "--- File: {path} ---"
DEFAULT_EXPORT_FILENAME = "repocontext_context.txt"
