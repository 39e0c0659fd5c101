"""
Exception types shared by the recordhub server and client
"""

from typing import Dict, Optional


class RecordHubError(Exception):
    """Base class for every error the service reports to a caller"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RecordHubError):
    """Input rejected before any shared state was touched"""

    status_code = 400

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class AuthenticationError(RecordHubError):
    status_code = 401


class NotFoundError(RecordHubError):
    status_code = 404


class FetchError(RecordHubError):
    """The backing store failed while populating a cache entry"""

    status_code = 502


class LockTimeoutError(RecordHubError):
    """The mutual exclusion gate could not be acquired in time"""

    status_code = 503

    def __init__(self, key: str, timeout: float):
        super().__init__(f"Timed out after {timeout:g}s waiting for lock on '{key}'")
        self.key = key
        self.timeout = timeout


class ApiError(RecordHubError):
    """Raised client-side for transport failures and error envelopes"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
