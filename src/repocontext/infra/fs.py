from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Resolves the per-user application data directory and the well-known file
locations inside it (settings, selection database, logs).
"""

import os
from typing import Optional, Tuple

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "RepoContext"
UNIX_APP_DIR_NAME = ".repocontext"

CONFIG_FILENAME = "config.json"
SELECTION_DB_FILENAME = "selections.db"
LOG_SUBDIR = "logs"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/RepoContext
    - Linux/Mac: ~/.repocontext

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        home = os.path.expanduser("~")
        path = os.path.join(home, UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def get_config_path() -> str:
    return os.path.join(get_user_data_dir(), CONFIG_FILENAME)


def get_selection_db_path() -> str:
    return os.path.join(get_user_data_dir(), SELECTION_DB_FILENAME)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion and user home shortcuts.
    Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip() or fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))


def safe_write_text(path: str, content: str) -> Tuple[bool, Optional[str]]:
    """
    Write text to a file, creating parent directories as needed.

    Args:
        path: Destination file.
        content: UTF-8 text to write.

    Returns:
        Tuple[bool, Optional[str]]: (Success flag, Error message if applicable).
    """
    try:
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return True, None
    except OSError as e:
        return False, str(e)
