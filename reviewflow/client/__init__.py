"""Client-side helpers for consumers of the review API."""

from reviewflow.client.collector import BatchCollector
from reviewflow.client.status import ReviewStatusClient

__all__ = ["BatchCollector", "ReviewStatusClient"]
