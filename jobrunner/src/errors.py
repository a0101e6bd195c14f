"""
Errors raised by the job runner.
"""

from typing import Optional
from kubernetes.client.rest import ApiException

class JobRunnerError(Exception):
    """Base class for job runner errors."""
    pass

class NotExistsError(JobRunnerError):
    """Raised when a job or its pods are absent or owned by another scope."""
    pass

class WaitTimeoutError(JobRunnerError):
    """Raised when a job does not complete before the wait deadline."""
    pass

class WaitCancelledError(JobRunnerError):
    """Raised when a caller stops a wait before the job completes."""
    pass

class OrchestratorError(JobRunnerError):
    """
    Kubernetes rejected or failed a request.

    The status, reason and body of the API response are kept unchanged.
    """

    def __init__(self, message: str, status: Optional[int] = None,
                 reason: Optional[str] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.body = body

    @classmethod
    def from_api_exception(cls, message: str, e: ApiException) -> "OrchestratorError":
        return cls(f"{message}: {e.status} {e.reason}", status=e.status, reason=e.reason, body=e.body)

class SubmissionError(OrchestratorError):
    """Raised when Kubernetes rejects a job create request."""
    pass

class QueryError(OrchestratorError):
    """Raised when any other Kubernetes read or write fails."""
    pass

def is_not_found(e: ApiException) -> bool:
    return e.status == 404
