"""Lever job board source."""

from typing import Any, Dict, List, Optional

from jobaggr.context import FetchContext
from jobaggr.domain.models import Job

from .base import HTTPJobSource
from .exceptions import SourceResponseError


class LeverSource(HTTPJobSource):
    """Source for Lever job boards.

    API Details:
        Endpoint: https://api.lever.co/v0/postings/{identifier}?mode=json
        Method: GET
        Authentication: None (public)
        Response: JSON array of posting objects (not wrapped in object)
    """

    SOURCE_LABEL = "Lever"
    API_BASE_URL = "https://api.lever.co/v0/postings"

    def _fetch_postings(self, ctx: FetchContext) -> List[Dict[str, Any]]:
        url = f"{self.API_BASE_URL}/{self.source_config.identifier}"
        response = self._make_request(ctx, url, params={"mode": "json"})

        # Lever returns a bare array; accept a wrapped one in case that changes
        if isinstance(response, list):
            return response
        if isinstance(response, dict) and isinstance(response.get("postings", []), list):
            return response.get("postings", [])
        raise SourceResponseError(
            f"Expected JSON array or object, got {type(response).__name__}"
        )

    def _transform_job(self, posting: Dict[str, Any]) -> Job:
        """Transform a Lever posting object into a Job.

        Field mapping:
            id -> id
            text -> title
            categories.location -> location
            descriptionPlain + additionalPlain -> description (HTML as fallback)
            hostedUrl -> url
            salaryRange -> salary
        """
        categories = posting.get("categories") or {}
        location = categories.get("location") if isinstance(categories, dict) else None

        return Job(
            id=posting["id"],
            title=posting["text"],
            company=self.source_config.name,
            location=location or "",
            url=posting["hostedUrl"],
            source=self.SOURCE_LABEL,
            salary=self._format_salary(posting.get("salaryRange")),
            description=self._get_description(posting) or None,
        )

    def _get_description(self, posting: Dict[str, Any]) -> str:
        """Combine plain-text description parts, falling back to cleaned HTML."""
        plain_parts = [
            (posting.get(key) or "").strip() for key in ("descriptionPlain", "additionalPlain")
        ]
        plain_parts = [p for p in plain_parts if p]
        if plain_parts:
            return "\n\n".join(plain_parts)

        html_parts = [(posting.get(key) or "").strip() for key in ("description", "additional")]
        html_parts = [p for p in html_parts if p]
        if html_parts:
            return self._clean_html("\n\n".join(html_parts))

        return ""

    @staticmethod
    def _format_salary(salary_range: Optional[Dict[str, Any]]) -> Optional[str]:
        """Render Lever's salaryRange object as e.g. "USD 120000 - 150000 per-year-salary"."""
        if not isinstance(salary_range, dict):
            return None

        low = salary_range.get("min")
        high = salary_range.get("max")
        if low is None and high is None:
            return None

        if low is not None and high is not None and low != high:
            amount = f"{low} - {high}"
        else:
            amount = str(low if low is not None else high)

        parts = [salary_range.get("currency"), amount, salary_range.get("interval")]
        return " ".join(str(p) for p in parts if p)
