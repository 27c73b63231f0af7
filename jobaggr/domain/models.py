"""Core domain model for retrieved job postings.

A Job is an opaque payload as far as aggregation is concerned: it is never
deduplicated, merged or reordered within a source. The ``id`` may be empty
(some boards expose none) and need not be unique across sources.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Job(BaseModel):
    """One job posting retrieved from a source."""

    id: str = Field("", description="Posting identifier from the source (may be empty)")
    title: str = Field("", description="Job title")
    company: str = Field("", description="Hiring organization name")
    location: str = Field("", description="Location as displayed by the source")
    url: str = Field("", description="Canonical link to the posting")
    source: str = Field("", description="Label of the source that produced this posting")
    salary: Optional[str] = Field(None, description="Salary text, if the source exposes one")
    description: Optional[str] = Field(None, description="Plain-text description, if available")

    @field_validator("id", "title", "company", "location", "url", "source", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> str:
        """Strip whitespace from string fields; None becomes an empty string."""
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("salary", "description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Collapse blank optional fields to None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    model_config = {"frozen": True, "json_schema_extra": {"example": {
        "id": "4012345",
        "title": "Senior Go Developer",
        "company": "Tech Innovations",
        "location": "Remote",
        "url": "https://boards.greenhouse.io/techinnovations/jobs/4012345",
        "source": "Greenhouse",
        "salary": "$150k - $200k",
        "description": "We are looking for an experienced Go developer...",
    }}}
