"""
API Layer - DNS Provider Implementations
Shared domain model and error taxonomy for every provider client
"""

# Domain model
from polydns.api.models import (
    CompositeKey,
    OpaqueId,
    Record,
    RecordType,
    Zone
)

# Exceptions (shared across providers)
from polydns.api.exceptions import (
    AmbiguousMatchError,
    APIError,
    AuthError,
    DNSError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RecordNotFoundError,
    ServerError,
    ValidationError,
    ZoneNotFoundError
)

__all__ = [
    # Model
    "CompositeKey",
    "OpaqueId",
    "Record",
    "RecordType",
    "Zone",
    
    # Exceptions
    "AmbiguousMatchError",
    "APIError",
    "AuthError",
    "DNSError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "RecordNotFoundError",
    "ServerError",
    "ValidationError",
    "ZoneNotFoundError"
]
