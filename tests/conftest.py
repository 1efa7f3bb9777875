import os
from urllib.parse import parse_qsl

import httpx
import pytest
import pytest_asyncio

# Keep test runs from writing a log file
os.environ["LOG_PATH"] = ""

from torrent_remote.search import SearchCoordinator
from torrent_remote.session import LoginSessionProvider
from torrent_remote.transport import DaemonTransport


BASE_URL = "http://qbittorrent.test:8080"
USERNAME = "admin"
PASSWORD = "adminadmin"

RAW_RESULTS = [
    {
        "fileName": "ubuntu-24.04-desktop-amd64.iso",
        "fileUrl": "magnet:?xt=urn:btih:aaaa",
        "fileSize": 6114656256,
        "nbSeeders": 812,
        "nbLeechers": 40,
        "siteUrl": "https://tracker.example",
        "descrLink": "https://tracker.example/t/1",
    },
    {
        "fileName": "ubuntu-24.04-live-server-amd64.iso",
        "fileSize": 2754981888,
        "nbSeeders": 120,
        "nbLeechers": 3,
    },
    {
        "fileName": "ubuntu-22.04-desktop-amd64.iso",
        "fileUrl": "https://tracker.example/dl/3.torrent",
        "fileSize": "4927586304",
        "nbSeeders": "95",
        "nbLeechers": -1,
    },
]


class FakeDaemon:
    """
    In-memory stand-in for the daemon's Web API, served via httpx.MockTransport.

    `statuses` is a list of (status, total) readings shared by every job, a
    dict keyed by job id, or a callable taking the poll number. A list keeps
    repeating its last reading once exhausted.
    """

    def __init__(self, statuses=None, results=None, job_ids=(42,), plugins=None):
        self.statuses = statuses if statuses is not None else [("Stopped", 0)]
        self.results = results if results is not None else list(RAW_RESULTS)
        self.job_ids = list(job_ids)
        self.plugins = plugins or []
        self.calls = []
        self.failures = {}
        self.valid_sids = set()
        self.expire_on_poll = None
        self._sid_counter = 0
        self._polls = {}

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def fail(self, endpoint, status_code=500, body="Internal Server Error"):
        """Make an endpoint answer with an HTTP error."""
        self.respond(endpoint, status_code, text=body)

    def respond(self, endpoint, status_code, **kwargs):
        """Answer every request to an endpoint with a canned response."""
        self.failures[endpoint] = (status_code, kwargs)

    def expire_sessions(self):
        self.valid_sids.clear()

    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]

    def count(self, endpoint):
        return self.endpoints().count(endpoint)

    def stop_ids(self):
        return [params["id"] for endpoint, params in self.calls if endpoint == "/search/stop"]

    # -------------------------------------------------------------------------
    # Request handling
    # -------------------------------------------------------------------------

    def _next_status(self, job_id):
        n = self._polls.get(job_id, 0)
        self._polls[job_id] = n + 1

        statuses = self.statuses
        if isinstance(statuses, dict):
            statuses = statuses[job_id]
        if callable(statuses):
            return statuses(n)
        return statuses[min(n, len(statuses) - 1)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path[len("/api/v2"):]
        if request.method == "POST":
            params = dict(parse_qsl(request.content.decode()))
        else:
            params = dict(request.url.params)
        self.calls.append((endpoint, params))

        if endpoint in self.failures:
            status_code, kwargs = self.failures[endpoint]
            return httpx.Response(status_code, **kwargs)

        if endpoint == "/auth/login":
            if params.get("username") != USERNAME or params.get("password") != PASSWORD:
                return httpx.Response(200, text="Fails.")
            self._sid_counter += 1
            sid = f"sid-{self._sid_counter}"
            self.valid_sids.add(sid)
            return httpx.Response(200, text="Ok.", headers={"set-cookie": f"SID={sid}; HttpOnly; path=/"})

        cookie = request.headers.get("cookie", "")
        sids = [part.split("=", 1)[1] for part in cookie.split("; ") if part.startswith("SID=")]
        if not any(sid in self.valid_sids for sid in sids):
            return httpx.Response(403, text="Forbidden")

        if endpoint == "/search/start":
            return httpx.Response(200, json={"id": self.job_ids.pop(0)})

        if endpoint == "/search/status":
            job_id = int(params["id"])
            status, total = self._next_status(job_id)
            if self._polls[job_id] == self.expire_on_poll:
                self.expire_sessions()
            return httpx.Response(200, json=[{"id": job_id, "status": status, "total": total}])

        if endpoint == "/search/results":
            return httpx.Response(200, json={
                "results": self.results,
                "status": "Running",
                "total": len(self.results),
            })

        if endpoint == "/search/stop":
            return httpx.Response(200)

        if endpoint == "/search/plugins":
            return httpx.Response(200, json=self.plugins)

        return httpx.Response(404, text="Not Found")


@pytest.fixture
def daemon():
    return FakeDaemon()


@pytest_asyncio.fixture
async def http_client(daemon):
    client = httpx.AsyncClient(transport=httpx.MockTransport(daemon.handler), base_url=BASE_URL)
    yield client
    await client.aclose()


@pytest.fixture
def transport(http_client):
    return DaemonTransport(BASE_URL, client=http_client)


@pytest.fixture
def session(transport):
    return LoginSessionProvider(transport, USERNAME, PASSWORD)


@pytest.fixture
def make_coordinator(transport, session):
    """Build a coordinator with a zero poll interval and no wall-clock cap."""
    def _make(**options):
        options.setdefault("poll_interval", 0)
        options.setdefault("max_polls", 15)
        options.setdefault("timeout", None)
        options.setdefault("stability_window", 2)
        return SearchCoordinator(transport, session, **options)
    return _make


@pytest.fixture
def events():
    """Collect the `event` tag of every log record emitted during a test."""
    from torrent_remote.logger import logger

    collected = []
    handler_id = logger.add(
        lambda message: collected.append(message.record["extra"].get("event")),
        level="DEBUG",
    )
    yield collected
    logger.remove(handler_id)
