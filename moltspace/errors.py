"""
Ingestion error taxonomy

- UpstreamError: Moltbook API returned non-2xx or the transport failed
- ReconciliationError: a single entity failed to upsert
- DependencyUnavailable: an optional collaborator (embedding provider) is not configured

Anything else escaping the job wrapper is reported as a failed run.
"""
from typing import Optional


class IngestionError(Exception):
    """Base class for ingestion pipeline errors"""


class UpstreamError(IngestionError):
    """Moltbook API call failed (HTTP status or transport error)"""

    def __init__(self, status: Optional[int], reason: str):
        self.status = status
        self.reason = reason
        if status is None:
            super().__init__(f"Moltbook API error: {reason}")
        else:
            super().__init__(f"Moltbook API error: {status} {reason}")


class ReconciliationError(IngestionError):
    """A single upstream record could not be upserted"""

    def __init__(self, kind: str, moltbook_id: str, cause: Exception):
        self.kind = kind
        self.moltbook_id = moltbook_id
        self.cause = cause
        super().__init__(f"Failed to process {kind} {moltbook_id}: {cause}")


class DependencyUnavailable(IngestionError):
    """Optional dependency is not configured"""
