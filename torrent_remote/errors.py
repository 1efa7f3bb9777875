"""
Exception hierarchy for search operations against the daemon.

Every failure surfaced to callers derives from SearchError so a UI layer can
catch one type and still branch on the concrete cause.
"""

from typing import List, Optional


class SearchError(Exception):
    """Base class for all search related failures."""


class AuthError(SearchError):
    """No valid session could be obtained."""


class AuthRejected(AuthError):
    """The daemon refused the session token attached to a request."""


class TransportError(SearchError):
    """Connectivity or HTTP-level failure while talking to the daemon."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(SearchError):
    """A response did not have the shape the Web API documents."""


class JobStartFailed(SearchError):
    """The daemon did not hand out a job id for a new search."""


class JobTimedOut(SearchError):
    """
    The poll budget ran out before the job stopped or converged.

    This is a soft failure: `records` holds whatever results could still be
    fetched for the job and callers may treat them as usable.
    """

    def __init__(self, job_id, records: Optional[List] = None):
        self.job_id = job_id
        self.records = list(records or [])
        super().__init__(
            f"Search job {job_id} timed out with {len(self.records)} partial results"
        )
