"""
Business logic and service layer
"""

from polydns.services.zone_service import ZoneService, ZoneServiceError

__all__ = [
    "ZoneService",
    "ZoneServiceError",
]
