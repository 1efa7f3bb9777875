"""
Session management for the daemon's Web API.

The daemon issues an opaque SID cookie on login and gives no expiry
contract, so any request rejected with 401/403 means "log in again".
"""

from abc import ABC, abstractmethod
from typing import Optional

from .config import Config
from .errors import AuthError, TransportError
from .logger import logger
from .transport import SESSION_COOKIE, DaemonTransport


class SessionProvider(ABC):
    """Supplies a valid session token on demand."""

    @abstractmethod
    def current_token(self) -> Optional[str]:
        """Return the cached token, or None if there is no live session."""
        pass

    @abstractmethod
    async def authenticate(self) -> str:
        """
        Establish a new session.

        Returns:
            The new session token

        Raises:
            AuthError: If the daemon refuses the credentials or is unreachable
        """
        pass

    @abstractmethod
    def invalidate(self) -> None:
        """Forget the cached token after the daemon rejected it."""
        pass


class LoginSessionProvider(SessionProvider):
    """Logs in with username and password via /auth/login."""

    def __init__(
        self,
        transport: DaemonTransport,
        username: str = Config.QBT_USERNAME,
        password: str = Config.QBT_PASSWORD
    ):
        self.transport = transport
        self.username = username
        self._password = password
        self._token: Optional[str] = None

    def current_token(self) -> Optional[str]:
        return self._token

    async def authenticate(self) -> str:
        try:
            response = await self.transport.post("/auth/login", data={
                "username": self.username,
                "password": self._password
            })
        except AuthError as e:
            raise AuthError(f"Login refused for {self.username} at {self.transport.base_url}") from e
        except TransportError as e:
            raise AuthError(f"Login failed for {self.username}: {e}") from e

        token = response.cookies.get(SESSION_COOKIE)
        if response.text.strip() != "Ok." or not token:
            raise AuthError(f"Login failed for {self.username}: {response.text.strip() or 'no session cookie'}")

        self._token = token
        logger.bind(event="session_authenticated").info(
            f"Logged in to {self.transport.base_url} as {self.username}"
        )
        return token

    def invalidate(self) -> None:
        self._token = None


class StaticSessionProvider(SessionProvider):
    """
    Uses a session token obtained elsewhere.

    There are no credentials to log in again with, so once the daemon rejects
    the token every further authenticate() call fails.
    """

    def __init__(self, token: str):
        self._token: Optional[str] = token
        self._original = token
        self._rejected = False

    def current_token(self) -> Optional[str]:
        return self._token

    async def authenticate(self) -> str:
        if self._rejected:
            raise AuthError("Session token was rejected and cannot be renewed")
        self._token = self._original
        return self._original

    def invalidate(self) -> None:
        self._token = None
        self._rejected = True
