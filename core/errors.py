"""
Error Taxonomy

Exceptions raised between the upstream client, the normalizer and the
function handlers. Every error knows the HTTP status it maps to, so the
handler boundary can turn any of them into a structured JSON response.

Hierarchy:
    ProxyError
    ├── ValidationError        (400) missing or invalid request input
    ├── NotFoundError          (404) upstream returned no matching data
    └── UpstreamError          (upstream status or 500) transport/provider failure
        └── MalformedUpstreamData (500) unexpected shape in a 200 response
"""

from typing import Optional


class ProxyError(Exception):
    """Base class for all errors handled at the function boundary."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProxyError):
    """Request input is missing or invalid."""

    status_code = 400


class NotFoundError(ProxyError):
    """The upstream answered successfully but had nothing for the identifier."""

    status_code = 404


class UpstreamError(ProxyError):
    """
    The upstream request failed.

    Attributes:
        status: HTTP status reported by the upstream, None for transport failures
        details: Structured upstream error message, or the failure message
    """

    def __init__(self, details: str, status: Optional[int] = None):
        super().__init__(details)
        self.details = details
        self.status = status

    @property
    def status_code(self) -> int:
        return self.status or 500

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, details={self.details!r})"


class MalformedUpstreamData(UpstreamError):
    """A successful upstream response did not have the expected shape."""

    def __init__(self, details: str):
        super().__init__(details, status=None)
