"""
Data types for search jobs, their results and the plugins that serve them.

SearchJob is the only mutable type and is owned by the coordinator; result
records and plugin descriptors are immutable snapshots handed to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet


class JobStatus(str, Enum):
    STARTED = "Started"
    POLLING = "Polling"
    STABILIZING = "Stabilizing"
    STOPPED = "Stopped"
    TIMED_OUT = "TimedOut"
    FAILED = "Failed"


# Reported by the daemon's search/status endpoint once a job has finished
DAEMON_STOPPED = "Stopped"


@dataclass
class SearchJob:
    """A search job registered on the daemon."""
    id: int
    query: str
    category: str
    status: JobStatus = JobStatus.STARTED
    last_observed_total: int = 0
    stable_observation_count: int = 0
    daemon_status: str = ""

    def observe(self, daemon_status: str, total: int, window: int = 2) -> None:
        """
        Record one poll reading.

        The stable count is the number of consecutive readings of the same
        non-zero total, so the first reading of a new non-zero total counts
        as one and a zero total always resets it. The job is stabilizing
        once that count reaches the stability window.
        """
        self.daemon_status = daemon_status
        if total > 0 and total == self.last_observed_total:
            self.stable_observation_count += 1
        else:
            self.stable_observation_count = 1 if total > 0 else 0
            self.last_observed_total = total

        if self.is_converged(window):
            self.status = JobStatus.STABILIZING
        else:
            self.status = JobStatus.POLLING

    @property
    def daemon_stopped(self) -> bool:
        return self.daemon_status == DAEMON_STOPPED

    def is_converged(self, window: int) -> bool:
        return self.last_observed_total > 0 and self.stable_observation_count >= window


@dataclass(frozen=True)
class SearchResultRecord:
    title: str
    download_uri: str
    size_bytes: int = 0
    seeder_count: int = 0
    leecher_count: int = 0
    source_site_uri: str = ""
    description_uri: str = ""


@dataclass(frozen=True)
class SearchPluginDescriptor:
    id: str
    display_name: str
    version: str = ""
    enabled: bool = False
    supported_categories: FrozenSet[str] = field(default_factory=frozenset)
    url: str = ""
