"""
Python client for a qBittorrent daemon's search feature.

Bundles the shared transport, a login session and a search coordinator
behind one object that a UI can drive from a background task.

Usage:
    from torrent_remote.client import RemoteClient

    async with RemoteClient("http://localhost:8080", "admin", "secret") as client:
        plugins = await client.list_plugins()
        results = await client.search("ubuntu", category="software")
"""

from typing import List, Optional

import httpx

from .config import Config
from .models import SearchPluginDescriptor, SearchResultRecord
from .search import SearchCoordinator
from .session import LoginSessionProvider, SessionProvider
from .transport import DaemonTransport


class RemoteClient:
    def __init__(
        self,
        base_url: str = Config.QBT_URL,
        username: str = Config.QBT_USERNAME,
        password: str = Config.QBT_PASSWORD,
        session: Optional[SessionProvider] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        **search_options
    ):
        self.transport = DaemonTransport(base_url, client=http_client)
        self.session = session or LoginSessionProvider(self.transport, username, password)
        self.coordinator = SearchCoordinator(self.transport, self.session, **search_options)

    @classmethod
    def from_config(cls, **overrides) -> "RemoteClient":
        """Build a client for the daemon and credentials named in the environment."""
        options = {
            "base_url": Config.QBT_URL,
            "username": Config.QBT_USERNAME,
            "password": Config.QBT_PASSWORD,
        }
        options.update(overrides)
        return cls(**options)

    async def login(self) -> str:
        return await self.session.authenticate()

    async def search(
        self,
        query: str,
        category: str = "all",
        timeout: Optional[float] = None
    ) -> List[SearchResultRecord]:
        return await self.coordinator.search(query, category, timeout=timeout)

    async def cancel_search(self) -> None:
        await self.coordinator.cancel()

    async def list_plugins(self) -> List[SearchPluginDescriptor]:
        return await self.coordinator.list_plugins()

    async def categories(self) -> List[str]:
        return await self.coordinator.categories()

    async def aclose(self) -> None:
        await self.coordinator.cancel()
        await self.transport.aclose()

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
