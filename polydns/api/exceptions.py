"""
Custom exceptions for DNS provider operations
"""

from typing import Optional


class DNSError(Exception):
    """Base exception for all DNS provider errors"""
    
    label = "DNSError"
    
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body or ""
        super().__init__(self.message)
    
    def __str__(self):
        if self.status_code:
            return f"{self.label} (HTTP {self.status_code}): {self.message}"
        return f"{self.label}: {self.message}"


class ValidationError(DNSError):
    """Raised when a zone or record fails local validation"""
    label = "ValidationError"


class AuthError(DNSError):
    """Raised when the provider rejects credentials (HTTP 401/403)"""
    label = "AuthError"


class NotFoundError(DNSError):
    """Raised on HTTP 404 or when a client-side lookup finds no match"""
    label = "NotFoundError"


class ZoneNotFoundError(NotFoundError):
    """Raised when a zone cannot be resolved for a domain"""
    pass


class RecordNotFoundError(NotFoundError):
    """Raised when a record cannot be resolved inside a zone"""
    pass


class AmbiguousMatchError(DNSError):
    """Raised when a composite record key matches more than one record"""
    label = "AmbiguousMatchError"


class NetworkError(DNSError):
    """Raised when network/connection errors occur"""
    label = "NetworkError"


class APIError(DNSError):
    """Raised for any other provider failure"""
    label = "APIError"


class RateLimitError(APIError):
    """Raised when the provider answers HTTP 429"""
    pass


class ServerError(APIError):
    """Raised when the provider returns 5xx errors"""
    pass
