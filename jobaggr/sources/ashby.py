"""Ashby job board source."""

from typing import Any, Dict, List

from jobaggr.context import FetchContext
from jobaggr.domain.models import Job
from jobaggr.logging import get_logger

from .base import HTTPJobSource
from .exceptions import SourceResponseError

logger = get_logger(__name__, component="source")


class AshbySource(HTTPJobSource):
    """Source for Ashby job boards.

    API Details:
        Endpoint: https://jobs.ashby.com/api/graphql
        Method: POST (GraphQL)
        Authentication: None for public job boards
        Response: GraphQL response with data or errors field
    """

    SOURCE_LABEL = "Ashby"
    API_ENDPOINT = "https://jobs.ashby.com/api/graphql"

    GRAPHQL_QUERY = """
    query JobBoard($organizationIdentifier: String!) {
      jobBoard(organizationIdentifier: $organizationIdentifier) {
        jobPostings {
          id
          title
          location {
            name
          }
          description
          externalLink
          compensationTierSummary
        }
      }
    }
    """

    def _fetch_postings(self, ctx: FetchContext) -> List[Dict[str, Any]]:
        payload = {
            "query": self.GRAPHQL_QUERY,
            "variables": {"organizationIdentifier": self.source_config.identifier},
        }
        response = self._make_request(ctx, self.API_ENDPOINT, method="POST", json_data=payload)

        if not isinstance(response, dict):
            raise SourceResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )

        if response.get("errors"):
            messages = [
                err.get("message", "Unknown error") if isinstance(err, dict) else str(err)
                for err in response["errors"]
            ]
            raise SourceResponseError(f"GraphQL errors: {', '.join(messages)}")

        job_board = (response.get("data") or {}).get("jobBoard")
        if not job_board:
            # Unknown organizations come back as a null board, not an error
            logger.warning(
                "No job board found for organization",
                extra={
                    "event": "source.board.missing",
                    "source_name": self.name,
                    "identifier": self.source_config.identifier,
                },
            )
            return []

        jobs_data = job_board.get("jobPostings") or []
        if not isinstance(jobs_data, list):
            raise SourceResponseError(
                f"Expected 'jobPostings' to be array, got {type(jobs_data).__name__}"
            )
        return jobs_data

    def _transform_job(self, posting: Dict[str, Any]) -> Job:
        """Transform an Ashby job posting into a Job."""
        location = posting.get("location")
        location_name = location.get("name") if isinstance(location, dict) else None

        return Job(
            id=posting["id"],
            title=posting["title"],
            company=self.source_config.name,
            location=location_name or "",
            url=posting["externalLink"],
            source=self.SOURCE_LABEL,
            salary=posting.get("compensationTierSummary"),
            description=self._clean_html(posting.get("description")) or None,
        )
