"""
Torrent Remote - Drive a qBittorrent daemon's search feature.

Starts search jobs on the daemon, polls them until they produce results or
run out of time, and always stops them afterwards.
"""

from .client import RemoteClient
from .config import Config
from .errors import (
    AuthError,
    JobStartFailed,
    JobTimedOut,
    ProtocolError,
    SearchError,
    TransportError,
)
from .models import SearchPluginDescriptor, SearchResultRecord
from .search import SearchCoordinator

__version__ = "0.1.0"
__all__ = [
    "RemoteClient",
    "Config",
    "SearchCoordinator",
    "SearchResultRecord",
    "SearchPluginDescriptor",
    "SearchError",
    "AuthError",
    "TransportError",
    "ProtocolError",
    "JobStartFailed",
    "JobTimedOut",
]
