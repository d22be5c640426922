"""
Cloudflare DNS API Client
Handles zones and DNS records through the Cloudflare v4 API
"""

import json
from typing import Any, Dict, List, Optional

from polydns.api.auth import BearerTokenAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import APIError, NotFoundError, RecordNotFoundError, ValidationError
from polydns.api.models import Record, RecordType, Zone, normalize_domain, parse_timestamp, to_relative
from polydns.api.pagination import OffsetPaginator
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

AUTOMATIC_TTL = 1


class CloudflareClient(BaseDNSProvider):
    """
    Cloudflare DNS client.
    
    Zones have opaque IDs and no get-by-name endpoint, so a domain is
    resolved by listing zones and filtering on the name. Every mutation
    reply carries a ``success`` flag that must be true.
    """
    
    BASE_URL = "https://api.cloudflare.com/client/v4"
    SUPPORTED_RECORD_TYPES = (
        RecordType.A,
        RecordType.AAAA,
        RecordType.CNAME,
        RecordType.MX,
        RecordType.TXT,
        RecordType.NS,
        RecordType.SRV,
        RecordType.PTR,
        RecordType.CAA,
    )
    EXTRA_TTLS = (AUTOMATIC_TTL,)
    ZONE_PAGE_SIZE = 50
    
    def __init__(self, api_token: str, **kwargs):
        """
        Initialize Cloudflare API client.
        
        Args:
            api_token: Scoped API token with Zone:DNS edit permission
        """
        super().__init__(BearerTokenAuth(api_token), **kwargs)
        logger.info("Cloudflare Client initialized")
    
    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    
    @staticmethod
    def parse_zone(data: Dict[str, Any]) -> Zone:
        return Zone(
            id=str(data.get("id", "")),
            domain=normalize_domain(data.get("name", "")),
            created_at=parse_timestamp(data.get("created_on")),
            updated_at=parse_timestamp(data.get("modified_on")),
            name_servers=list(data.get("name_servers") or [])
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any], zone_name: str = "") -> Record:
        """
        Map a Cloudflare DNS record to a Record.
        
        SRV and CAA keep their extra fields in a nested ``data`` object.
        Names are made relative to ``zone_name`` when it is given.
        """
        record_type = RecordType.from_string(data.get("type"))
        name = data.get("name") or "@"
        if zone_name:
            name = to_relative(name, zone_name)
        
        value = data.get("content", "")
        priority = data.get("priority")
        weight = port = flags = tag = None
        
        extra = data.get("data")
        if isinstance(extra, dict):
            if record_type is RecordType.SRV:
                weight = extra.get("weight", weight)
                port = extra.get("port", port)
                priority = extra.get("priority", priority)
                value = extra.get("target") or value
            elif record_type is RecordType.CAA:
                flags = extra.get("flags", flags)
                tag = extra.get("tag", tag)
                value = extra.get("value") or value
        
        return Record(
            id=str(data.get("id", "")),
            name=name,
            type=record_type,
            value=value,
            ttl=data.get("ttl"),
            priority=priority,
            weight=weight,
            port=port,
            flags=flags,
            tag=tag
        )
    
    @staticmethod
    def record_to_json(record: Record) -> Dict[str, Any]:
        body = {
            "name": record.name,
            "type": record.type.value,
            "content": record.value,
            "ttl": record.ttl,
        }
        if record.type.requires_priority:
            body["priority"] = record.priority
        if record.type is RecordType.SRV:
            body["data"] = {
                "priority": record.priority,
                "weight": record.weight,
                "port": record.port,
                "target": record.value,
            }
        elif record.type is RecordType.CAA:
            body["data"] = {
                "flags": record.flags,
                "tag": record.tag,
                "value": record.value,
            }
        return body
    
    @staticmethod
    def _check_success(response: Any, action: str) -> Any:
        """
        Raise APIError when a Cloudflare envelope reports failure.
        """
        if isinstance(response, dict) and response.get("success") is False:
            errors = response.get("errors") or []
            detail = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
            ) or "unknown error"
            raise APIError(f"Cloudflare {action} failed: {detail}", response_body=json.dumps(response))
        return response
    
    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Cloudflare zones")
        items = OffsetPaginator(
            self.executor,
            "/zones",
            items_key="result",
            page_size=self.ZONE_PAGE_SIZE,
            max_pages=self.max_pages,
            total_pages=("result_info", "total_pages"),
            identity=lambda item: item.get("id")
        )
        return [self.parse_zone(item) for item in items]
    
    def get_zone(self, domain: str) -> Zone:
        domain = normalize_domain(domain)
        response = self._request("GET", "/zones", params={"name": domain})
        zones = [self.parse_zone(item) for item in (response or {}).get("result") or []]
        return self.find_zone(zones, domain)
    
    def _zone_id(self, domain: str) -> str:
        return self.get_zone(domain).id
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Cloudflare zone: {domain}")
        response = self._check_success(
            self._request("POST", "/zones", body={"name": domain, "jump_start": False}),
            "zone create"
        )
        logger.info(f"✅ Zone created: {domain}")
        return self.parse_zone((response or {}).get("result") or {"name": domain})
    
    def delete_zone(self, domain: str) -> None:
        zone_id = self._zone_id(domain)
        logger.info(f"Deleting Cloudflare zone: {domain} ({zone_id})")
        self._check_success(self._request("DELETE", f"/zones/{zone_id}"), "zone delete")
    
    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        zone = self.get_zone(domain)
        params = {}
        if record_type is not None:
            record_type = RecordType.from_string(record_type)
            params["type"] = record_type.value
        
        items = OffsetPaginator(
            self.executor,
            f"/zones/{zone.id}/dns_records",
            items_key="result",
            params=params,
            page_size=self.page_size,
            max_pages=self.max_pages,
            total_pages=("result_info", "total_pages"),
            identity=lambda item: item.get("id")
        )
        records = self._parse_records(items, lambda item: self.parse_record(item, zone.domain))
        return self._filter_records(records, record_type)
    
    def get_record(self, domain: str, record_id: str) -> Record:
        zone = self.get_zone(domain)
        try:
            response = self._request("GET", f"/zones/{zone.id}/dns_records/{record_id}")
        except NotFoundError as e:
            raise RecordNotFoundError(f"Record not found: {record_id}", status_code=e.status_code,
                                      response_body=e.response_body) from e
        data = (self._check_success(response, "record lookup") or {}).get("result")
        if not data:
            raise RecordNotFoundError(f"Record not found: {record_id}")
        return self.parse_record(data, zone.domain)
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {zone.domain}")
        response = self._check_success(
            self._request("POST", f"/zones/{zone.id}/dns_records", body=self.record_to_json(record)),
            "record create"
        )
        data = (response or {}).get("result")
        return self.parse_record(data, zone.domain) if data else record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        if not record.id:
            raise ValidationError("Record ID is required for update")
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Updating record {record.id} in {zone.domain}")
        response = self._check_success(
            self._request("PUT", f"/zones/{zone.id}/dns_records/{record.id}",
                          body=self.record_to_json(record)),
            "record update"
        )
        data = (response or {}).get("result")
        return self.parse_record(data, zone.domain) if data else record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        zone = self.get_zone(domain)
        logger.info(f"Deleting record {record_id} from {zone.domain}")
        self._check_success(
            self._request("DELETE", f"/zones/{zone.id}/dns_records/{record_id}"),
            "record delete"
        )
