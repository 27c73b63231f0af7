"""Source capability and the shared base for HTTP-backed ATS sources.

JobSource is the only thing the aggregator knows about: given a context, a
query and a location it returns a list of Job or raises. HTTPJobSource adds
the plumbing every public ATS job board needs (session, request error
mapping, HTML cleaning, query/location filtering, truncation) so that a
concrete board only describes its endpoint and its posting shape.
"""

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from jobaggr.config.models import SourceConfig
from jobaggr.context import FetchContext, FetchTimeoutError
from jobaggr.domain.models import Job
from jobaggr.logging import get_logger

from .exceptions import (
    SourceConfigurationError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)

logger = get_logger(__name__, component="source")


class JobSource(ABC):
    """A pluggable capability that retrieves jobs for a query/location pair.

    Implementations must be safe to call from a worker thread, must not keep
    per-call state on the instance, and should observe ``ctx`` cancellation
    in a timely manner.

    Attributes:
        name: Label identifying the source in logs
    """

    name: str = "source"

    @abstractmethod
    def fetch_jobs(self, ctx: FetchContext, query: str, location: str) -> List[Job]:
        """Retrieve jobs matching ``query`` and ``location``.

        Args:
            ctx: Cancellation signal and deadline for this call
            query: Search text, forwarded verbatim from the caller
            location: Location text, forwarded verbatim from the caller

        Returns:
            Jobs in the order the source produced them

        Raises:
            Exception: Any failure; the aggregator propagates it unmodified
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class HTTPJobSource(JobSource):
    """Base class for sources backed by a public ATS JSON API.

    Subclasses implement ``_fetch_postings()`` and ``_transform_job()``;
    ``fetch_jobs()`` runs the request, transforms each posting, filters by
    query/location and truncates to ``max_jobs``.

    Attributes:
        source_config: Company board this source reads
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_jobs: Maximum jobs to return per call (0 = unlimited)
    """

    SOURCE_LABEL = "ATS"

    def __init__(
        self,
        source_config: SourceConfig,
        timeout: int = 30,
        user_agent: str = "JobAggregator/1.0",
        max_jobs: int = 1000,
    ) -> None:
        """Initialize source with configuration.

        Args:
            source_config: Source configuration with ATS type and identifier
            timeout: HTTP request timeout in seconds (default 30, range 5-300)
            user_agent: User-Agent header for requests
            max_jobs: Maximum jobs to return per call (default 1000, 0 = unlimited)

        Raises:
            SourceConfigurationError: If timeout is outside valid range or user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise SourceConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise SourceConfigurationError("user_agent cannot be empty")
        if max_jobs < 0:
            raise SourceConfigurationError(f"max_jobs cannot be negative, got: {max_jobs}")

        self.source_config = source_config
        self.name = source_config.name
        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_jobs = max_jobs

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    # ------------------------------------------------------------------
    # JobSource
    # ------------------------------------------------------------------

    def fetch_jobs(self, ctx: FetchContext, query: str, location: str) -> List[Job]:
        """Fetch the board, keep postings matching query and location.

        Raises:
            FetchCancelledError: If ``ctx`` is cancelled before or during the request
            FetchTimeoutError: If ``ctx`` expires before or during the request
            SourceError: On HTTP, timeout or response-shape failures
        """
        ctx.raise_if_cancelled()

        postings = self._fetch_postings(ctx)

        jobs = []
        for posting in postings:
            try:
                jobs.append(self._transform_job(posting))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning(
                    f"Failed to transform {self.SOURCE_LABEL} posting",
                    extra={
                        "event": "source.transform.failed",
                        "source_name": self.name,
                        "job_id": posting.get("id") if isinstance(posting, dict) else None,
                        "error": str(e),
                    },
                )

        matched = [job for job in jobs if matches_query(job, query) and matches_location(job, location)]
        matched = self._truncate_jobs(matched)

        logger.info(
            f"Fetched jobs from {self.SOURCE_LABEL}",
            extra={
                "event": "source.fetch.completed",
                "source_name": self.name,
                "identifier": self.source_config.identifier,
                "fetched": len(jobs),
                "matched": len(matched),
            },
        )
        return matched

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _fetch_postings(self, ctx: FetchContext) -> List[Dict[str, Any]]:
        """Request the board and return its raw posting objects.

        Raises:
            SourceError: On request failure or unexpected response shape
        """

    @abstractmethod
    def _transform_job(self, posting: Dict[str, Any]) -> Job:
        """Map one raw posting to a Job.

        Raises:
            KeyError, ValueError, TypeError: If the posting lacks required fields
        """

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _make_request(
        self,
        ctx: FetchContext,
        url: str,
        method: str = "GET",
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request bounded by both the request timeout and ``ctx``.

        The request timeout is capped by the context's remaining time, and the
        context is checked again once the response arrives so a cancelled
        search never parses a late body.

        Args:
            ctx: Context whose deadline and cancellation bound the request
            url: URL to request
            method: HTTP method (default "GET")
            params: Query parameters
            json_data: JSON body for POST requests

        Returns:
            Parsed JSON response

        Raises:
            FetchCancelledError: If ``ctx`` is cancelled
            FetchTimeoutError: If ``ctx`` expires
            SourceHTTPError: On 4xx/5xx status or connection failure
            SourceTimeoutError: On request timeout while ``ctx`` is still live
            SourceResponseError: On invalid JSON
        """
        ctx.raise_if_cancelled()
        request_timeout = self._request_timeout(ctx)

        logger.debug(
            f"HTTP {method} request to {url}",
            extra={
                "event": "source.request.started",
                "source_name": self.name,
                "method": method,
                "url": url,
                "timeout": request_timeout,
            },
        )

        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=request_timeout,
            )
        except requests.exceptions.Timeout as e:
            if ctx.done() or ctx.remaining() == 0:
                raise (ctx.error or FetchTimeoutError()) from e
            logger.warning(
                f"Request to {url} timed out after {request_timeout:g} seconds",
                extra={
                    "event": "source.request.timeout",
                    "source_name": self.name,
                    "url": url,
                    "timeout": request_timeout,
                },
            )
            raise SourceTimeoutError(
                f"Request to {url} timed out after {request_timeout:g} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "source.request.failed",
                    "source_name": self.name,
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise SourceHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e

        ctx.raise_if_cancelled()

        if response.status_code >= 400:
            log_level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                log_level,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "source.request.failed",
                    "source_name": self.name,
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise SourceHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            # requests' JSONDecodeError subclasses ValueError
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={
                    "event": "source.response.invalid",
                    "source_name": self.name,
                    "url": url,
                },
            )
            raise SourceResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    def _request_timeout(self, ctx: FetchContext) -> float:
        """Return the configured timeout, capped by the context's remaining time."""
        remaining = ctx.remaining()
        if remaining is None:
            return float(self.timeout)
        if remaining <= 0:
            raise FetchTimeoutError()
        return min(float(self.timeout), remaining)

    def _clean_html(self, html_text: Optional[str]) -> str:
        """Clean HTML tags and entities from text.

        Decodes entities, turns <br> and </p> into line breaks, strips the
        remaining tags and normalizes whitespace.

        Args:
            html_text: Text containing HTML formatting

        Returns:
            Plain text with whitespace normalized and HTML removed
        """
        if not html_text:
            return ""

        text = html.unescape(html_text)
        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r" *\n *", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    def _truncate_jobs(self, jobs: List[Job]) -> List[Job]:
        """Truncate the job list to max_jobs if configured."""
        if self.max_jobs > 0 and len(jobs) > self.max_jobs:
            logger.warning(
                "Truncating jobs to max_jobs limit",
                extra={
                    "event": "source.fetch.truncated",
                    "source_name": self.name,
                    "total": len(jobs),
                    "max": self.max_jobs,
                },
            )
            return jobs[: self.max_jobs]
        return jobs


def matches_query(job: Job, query: str) -> bool:
    """Return True if every whitespace-separated query term appears in the job.

    Terms are matched case-insensitively against the title and description.
    An empty query matches every job.
    """
    terms = query.lower().split()
    if not terms:
        return True
    haystack = f"{job.title}\n{job.description or ''}".lower()
    return all(term in haystack for term in terms)


def matches_location(job: Job, location: str) -> bool:
    """Return True if ``location`` is a case-insensitive substring of the job's location.

    An empty location matches every job.
    """
    wanted = location.strip().lower()
    if not wanted:
        return True
    return wanted in job.location.lower()
