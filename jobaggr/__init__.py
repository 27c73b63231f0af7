"""Job Aggregator: fan a job search out to many sources and combine the results."""

__version__ = "0.1.0"
