"""
Coordinator for search jobs on the daemon.

A search is not a single request: the daemon runs it as a job that fans out
to the installed plugins. The coordinator starts the job, polls its status
on a fixed cadence until it stops, converges or runs out of budget, fetches
and normalizes the results, and always stops the job afterwards:
- Stopped with results: fetch immediately
- Stopped with no results: empty list, not an error
- Same non-zero total for SEARCH_STABILITY_WINDOW polls: fetch early
- Budget exhausted (poll count or wall clock, whichever first): fetch what is
  there and raise JobTimedOut carrying it

Only one job runs per coordinator. Starting a new search cancels the active
one and waits for its stop request before the new job is started.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from .config import Config
from .errors import (
    AuthError,
    AuthRejected,
    JobStartFailed,
    JobTimedOut,
    ProtocolError,
    SearchError,
    TransportError,
)
from .logger import logger
from .models import JobStatus, SearchJob, SearchPluginDescriptor, SearchResultRecord
from .normalizer import decode_int, decode_str, normalize, normalize_plugins, supported_categories
from .session import SessionProvider
from .transport import DaemonTransport


class SearchCoordinator:
    def __init__(
        self,
        transport: DaemonTransport,
        session: SessionProvider,
        poll_interval: float = Config.SEARCH_POLL_INTERVAL,
        max_polls: int = Config.SEARCH_MAX_POLLS,
        timeout: Optional[float] = Config.SEARCH_TIMEOUT,
        stability_window: int = Config.SEARCH_STABILITY_WINDOW,
        result_limit: int = Config.SEARCH_RESULT_LIMIT,
        plugins: Union[str, Sequence[str]] = Config.SEARCH_PLUGINS
    ):
        self.transport = transport
        self.session = session
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.timeout = timeout
        self.stability_window = stability_window
        self.result_limit = result_limit
        self.plugins = plugins

        self._job: Optional[SearchJob] = None
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def active_job(self) -> Optional[SearchJob]:
        return self._job

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def search(
        self,
        query: str,
        category: str = "all",
        timeout: Optional[float] = None
    ) -> List[SearchResultRecord]:
        """
        Run a search job to completion and return its normalized results.

        Args:
            query: Search pattern, must not be empty
            category: "all" or a category supported by an enabled plugin
            timeout: Wall-clock budget in seconds for this call, overriding
                the configured one

        Raises:
            AuthError: No valid session could be established
            JobStartFailed: The daemon did not start a job
            TransportError: HTTP failure while polling or fetching
            ProtocolError: A status or result payload was malformed
            JobTimedOut: The budget ran out; carries partial results
        """
        if not query or not query.strip():
            raise ValueError("Search query must not be empty")

        await self.cancel()

        task = asyncio.ensure_future(self._run(query, category or "all", timeout))
        self._task = task
        return await task

    async def cancel(self) -> None:
        """Cancel the active search and wait until its job has been stopped."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})

    async def list_plugins(self) -> List[SearchPluginDescriptor]:
        """Fetch the installed search plugins. Not cached."""
        async def step(token):
            return DaemonTransport.json(await self.transport.get("/search/plugins", token))

        payload = await self._call(step)
        if not isinstance(payload, list):
            raise ProtocolError(f"Plugin listing is not a list: {payload!r}")
        return normalize_plugins(payload)

    async def categories(self) -> List[str]:
        return supported_categories(await self.list_plugins())

    # -------------------------------------------------------------------------
    # Job lifecycle
    # -------------------------------------------------------------------------

    async def _run(self, query: str, category: str, timeout: Optional[float]) -> List[SearchResultRecord]:
        async with self._lock:
            job_id = await self._start(query, category)
            job = SearchJob(id=job_id, query=query, category=category)
            self._job = job
            logger.bind(event="job_started", job_id=job.id).info(
                f"Started search job {job.id} for '{query}' in {category}"
            )

            try:
                return await self._drive(job, timeout)
            except asyncio.CancelledError:
                job.status = JobStatus.FAILED
                logger.bind(event="job_cancelled", job_id=job.id).info(f"Search job {job.id} cancelled")
                raise
            except JobTimedOut:
                raise
            except SearchError:
                job.status = JobStatus.FAILED
                raise
            finally:
                self._job = None
                await asyncio.shield(self._stop(job))

    async def _drive(self, job: SearchJob, timeout: Optional[float]) -> List[SearchResultRecord]:
        budget = self.timeout if timeout is None else timeout
        job.status = JobStatus.POLLING

        try:
            if budget is not None and budget > 0:
                ready = await asyncio.wait_for(self._poll(job), budget)
            else:
                ready = await self._poll(job)
        except asyncio.TimeoutError:
            ready = None

        if ready is None:
            return await self._timed_out(job)

        if job.daemon_stopped:
            job.status = JobStatus.STOPPED

        if not ready:
            logger.bind(event="job_finished_empty", job_id=job.id).info(
                f"Search job {job.id} stopped without results"
            )
            return []

        return await self._results(job.id)

    async def _poll(self, job: SearchJob) -> Optional[bool]:
        """
        Poll the job until it stops or its total converges.

        Returns True when results should be fetched, False when the job
        stopped with nothing found, and None when max_polls ran out.
        """
        for attempt in range(1, self.max_polls + 1):
            await asyncio.sleep(self.poll_interval)

            status, total = await self._status(job.id)
            job.observe(status, total, self.stability_window)
            logger.bind(event="job_polled", job_id=job.id, attempt=attempt, total=total).debug(
                f"Search job {job.id} poll {attempt}: {status}, {total} results"
            )

            if job.daemon_stopped:
                return total > 0

            if job.is_converged(self.stability_window):
                logger.bind(event="job_converged", job_id=job.id, total=total).info(
                    f"Search job {job.id} converged at {total} results"
                )
                return True

        return None

    async def _timed_out(self, job: SearchJob) -> List[SearchResultRecord]:
        job.status = JobStatus.TIMED_OUT
        try:
            records = await self._results(job.id)
        except SearchError as e:
            logger.warning(f"Could not fetch partial results for search job {job.id}: {e}")
            records = []

        logger.bind(event="job_timed_out", job_id=job.id, total=len(records)).warning(
            f"Search job {job.id} timed out with {len(records)} partial results"
        )
        raise JobTimedOut(job.id, records)

    # -------------------------------------------------------------------------
    # Daemon endpoints
    # -------------------------------------------------------------------------

    async def _token(self) -> str:
        token = self.session.current_token()
        if token:
            return token
        return await self.session.authenticate()

    async def _call(self, step: Callable[[str], Awaitable[Any]]) -> Any:
        """Run step with a session token, logging in again once if the daemon rejects it."""
        token = await self._token()
        try:
            return await step(token)
        except AuthRejected:
            logger.bind(event="session_rejected").info("Session rejected by daemon, logging in again")
            self.session.invalidate()
            token = await self.session.authenticate()
        return await step(token)

    def _plugins_param(self) -> str:
        if isinstance(self.plugins, str):
            return self.plugins
        return "|".join(self.plugins)

    async def _start(self, query: str, category: str) -> int:
        async def step(token):
            response = await self.transport.post("/search/start", token, data={
                "pattern": query,
                "plugins": self._plugins_param(),
                "category": category
            })
            return DaemonTransport.json(response)

        try:
            payload = await self._call(step)
        except AuthError:
            raise
        except (TransportError, ProtocolError) as e:
            raise JobStartFailed(f"Could not start search for '{query}': {e}") from e

        job_id = decode_int(payload.get("id")) if isinstance(payload, dict) else None
        if job_id is None:
            raise JobStartFailed(f"Daemon returned no job id for '{query}': {payload!r}")
        return job_id

    async def _status(self, job_id: int) -> Tuple[str, int]:
        async def step(token):
            return DaemonTransport.json(
                await self.transport.get("/search/status", token, params={"id": job_id})
            )

        payload = await self._call(step)

        # The daemon answers with a one-element list when an id is given
        entry = payload[0] if isinstance(payload, list) and payload else payload
        if not isinstance(entry, dict):
            raise ProtocolError(f"Unexpected status payload for job {job_id}: {payload!r}")

        status = decode_str(entry.get("status"))
        total = decode_int(entry.get("total"))
        if status is None or total is None:
            raise ProtocolError(f"Status for job {job_id} is missing status or total: {entry!r}")
        return status, max(total, 0)

    async def _results(self, job_id: int) -> List[SearchResultRecord]:
        async def step(token):
            return DaemonTransport.json(
                await self.transport.get("/search/results", token, params={
                    "id": job_id,
                    "limit": self.result_limit
                })
            )

        payload = await self._call(step)
        raw = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(raw, list):
            raise ProtocolError(f"Results for job {job_id} have no result list: {payload!r}")

        records = normalize(raw)
        logger.bind(event="results_fetched", job_id=job_id, raw=len(raw), kept=len(records)).info(
            f"Fetched {len(raw)} results for search job {job_id}, kept {len(records)}"
        )
        return records

    async def _stop(self, job: SearchJob) -> None:
        """Stop the job once. Failures are logged and never replace the outcome."""
        try:
            await self.transport.post("/search/stop", self.session.current_token(), data={"id": job.id})
        except SearchError as e:
            logger.bind(event="job_stop_failed", job_id=job.id).warning(f"Failed to stop search job {job.id}: {e}")
        else:
            logger.bind(event="job_stopped", job_id=job.id).debug(f"Stopped search job {job.id}")
