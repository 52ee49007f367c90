from __future__ import annotations

"""
HTTP clients for the two services the app talks to.

This package exposes:
- ForumClient: protocol for read access to the forum.
- ForumCredentials: the personal access token, loadable from env vars.
- ForumAPIClient: V2EX API client (versioned API + public legacy feeds).
- UserDataStoreClient: favorites / history / subscriptions / preferences.
"""

from .forum_client import ForumAPIClient, ForumClient, ForumCredentials
from .store_client import UserDataStoreClient

__all__ = [
    "ForumClient",
    "ForumAPIClient",
    "ForumCredentials",
    "UserDataStoreClient",
]
