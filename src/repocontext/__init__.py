from __future__ import annotations

"""
RepoContext.

Hierarchical file selection and size aggregation over repository listings.
"""

from repocontext.domain.constants import APP_VERSION

__version__ = APP_VERSION
