"""Greenhouse job board source."""

from __future__ import annotations

from typing import Any

from jobaggr.context import FetchContext
from jobaggr.domain.models import Job

from .base import HTTPJobSource
from .exceptions import SourceResponseError


class GreenhouseSource(HTTPJobSource):
    """Source for Greenhouse job boards.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{identifier}/jobs
        Method: GET
        Authentication: None (public)
        Response: JSON object with 'jobs' array
    """

    SOURCE_LABEL = "Greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    # Metadata fields worth appending to the description for matching
    METADATA_FIELDS = {
        "Career Site Department": "Department",
        "Department": "Department",
        "Employment Type": "Employment Type",
    }

    def _fetch_postings(self, ctx: FetchContext) -> list[dict[str, Any]]:
        url = f"{self.API_BASE_URL}/{self.source_config.identifier}/jobs"
        response = self._make_request(ctx, url, params={"content": "true"})

        if not isinstance(response, dict):
            raise SourceResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )

        jobs_data = response.get("jobs", [])
        if not isinstance(jobs_data, list):
            raise SourceResponseError(
                f"Expected 'jobs' field to be array, got {type(jobs_data).__name__}"
            )
        return jobs_data

    def _transform_job(self, posting: dict[str, Any]) -> Job:
        """Transform a Greenhouse job object into a Job."""
        description_html = posting.get("content") or posting.get("description") or ""
        metadata_text = self._extract_metadata_text(posting.get("metadata") or [])
        description = self._clean_html(f"{description_html}\n\n{metadata_text}".strip())

        return Job(
            id=str(posting["id"]),
            title=posting["title"],
            company=self.source_config.name,
            location=self._get_combined_location(posting) or "",
            url=posting["absolute_url"],
            source=self.SOURCE_LABEL,
            description=description or None,
        )

    def _extract_metadata_text(self, metadata: list[dict]) -> str:
        """Format the interesting metadata entries as "Label: value" lines."""
        lines = []
        for item in metadata:
            name = item.get("name")
            value = item.get("value")
            if name not in self.METADATA_FIELDS or not value:
                continue
            if isinstance(value, list):
                value = ", ".join(filter(None, value))
            if value:
                lines.append(f"{self.METADATA_FIELDS[name]}: {value}")
        return "\n".join(lines)

    def _get_combined_location(self, posting: dict) -> str | None:
        """Combine the top-level location with the 'Job Posting Location' metadata."""
        top_level = (posting.get("location") or {}).get("name")

        metadata_location = None
        for item in posting.get("metadata") or []:
            if item.get("name") == "Job Posting Location" and item.get("value"):
                value = item["value"]
                if isinstance(value, list):
                    metadata_location = ", ".join(filter(None, value))
                else:
                    metadata_location = str(value)
                break

        if top_level and metadata_location and top_level.lower() != metadata_location.lower():
            return f"{top_level} ({metadata_location})"
        return top_level or metadata_location
