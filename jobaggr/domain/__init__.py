"""Domain models for the job aggregator."""

from .models import Job

__all__ = ["Job"]
