"""
DigitalOcean DNS API Client
Handles domains and domain records through the DigitalOcean v2 API
"""

from typing import Any, Dict, List, Optional

from polydns.api.auth import BearerTokenAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import NotFoundError, RecordNotFoundError, ValidationError, ZoneNotFoundError
from polydns.api.models import Record, RecordType, Zone, normalize_domain
from polydns.api.pagination import OffsetPaginator
from polydns.utils.logger import get_logger


logger = get_logger(__name__)


def parse_zone_file_name_servers(zone_file: str) -> List[str]:
    """
    Extract NS targets from a BIND-style zone file.
    
    Each line is split on whitespace; the token following an ``NS``
    token is taken as a name server.
    
    Example:
        "example.com. 1800 IN NS ns1.digitalocean.com." -> ["ns1.digitalocean.com"]
    """
    servers = []
    for line in (zone_file or "").splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue
        for index, token in enumerate(parts[:-1]):
            if token.upper() == "NS":
                server = parts[index + 1].rstrip(".")
                if server not in servers:
                    servers.append(server)
                break
    return servers


class DigitalOceanClient(BaseDNSProvider):
    """
    DigitalOcean DNS client.
    
    The domain name doubles as the zone ID. The API offers no type filter
    on record listings, so records are filtered client-side.
    """
    
    BASE_URL = "https://api.digitalocean.com/v2"
    SUPPORTED_RECORD_TYPES = (
        RecordType.A,
        RecordType.AAAA,
        RecordType.CNAME,
        RecordType.MX,
        RecordType.TXT,
        RecordType.NS,
        RecordType.SRV,
        RecordType.CAA,
    )
    MIN_TTL = 30
    
    def __init__(self, api_token: str, **kwargs):
        """
        Initialize DigitalOcean API client.
        
        Args:
            api_token: DigitalOcean personal access token
        """
        super().__init__(BearerTokenAuth(api_token), **kwargs)
        logger.info("DigitalOcean Client initialized")
    
    @staticmethod
    def parse_zone(data: Dict[str, Any]) -> Zone:
        name = normalize_domain(data.get("name", ""))
        return Zone(
            id=name,
            domain=name,
            name_servers=parse_zone_file_name_servers(data.get("zone_file", ""))
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any]) -> Record:
        return Record(
            id=str(data.get("id", "")),
            name=data.get("name") or "@",
            type=RecordType.from_string(data.get("type")),
            value=data.get("data", ""),
            ttl=data.get("ttl"),
            priority=data.get("priority"),
            weight=data.get("weight"),
            port=data.get("port"),
            flags=data.get("flags"),
            tag=data.get("tag")
        )
    
    @staticmethod
    def record_to_json(record: Record) -> Dict[str, Any]:
        body = {
            "type": record.type.value,
            "name": record.name,
            "data": record.value,
            "ttl": record.ttl,
        }
        if record.type.requires_priority:
            body["priority"] = record.priority
        if record.type is RecordType.SRV:
            body["weight"] = record.weight
            body["port"] = record.port
        if record.type is RecordType.CAA:
            body["flags"] = record.flags
            body["tag"] = record.tag
        return body
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing DigitalOcean domains")
        items = OffsetPaginator(
            self.executor,
            "/domains",
            items_key="domains",
            page_size=self.page_size,
            max_pages=self.max_pages,
            total_items=("meta", "total"),
            identity=lambda item: item.get("name")
        )
        return [self.parse_zone(item) for item in items]
    
    def get_zone(self, domain: str) -> Zone:
        domain = normalize_domain(domain)
        try:
            response = self._request("GET", f"/domains/{domain}")
        except NotFoundError as e:
            raise ZoneNotFoundError(f"Zone not found: {domain}", status_code=e.status_code,
                                    response_body=e.response_body) from e
        data = (response or {}).get("domain")
        if not data:
            raise ZoneNotFoundError(f"Zone not found: {domain}")
        return self.parse_zone(data)
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating DigitalOcean domain: {domain}")
        response = self._request("POST", "/domains", body={"name": domain})
        logger.info(f"✅ Domain created: {domain}")
        return self.parse_zone((response or {}).get("domain") or {"name": domain})
    
    def delete_zone(self, domain: str) -> None:
        domain = normalize_domain(domain)
        logger.info(f"Deleting DigitalOcean domain: {domain}")
        self._request("DELETE", f"/domains/{domain}")
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        domain = normalize_domain(domain)
        items = OffsetPaginator(
            self.executor,
            f"/domains/{domain}/records",
            items_key="domain_records",
            page_size=self.page_size,
            max_pages=self.max_pages,
            total_items=("meta", "total"),
            identity=lambda item: item.get("id")
        )
        return self._filter_records(self._parse_records(items, self.parse_record), record_type)
    
    def get_record(self, domain: str, record_id: str) -> Record:
        domain = normalize_domain(domain)
        try:
            response = self._request("GET", f"/domains/{domain}/records/{record_id}")
        except NotFoundError as e:
            raise RecordNotFoundError(f"Record not found: {record_id}", status_code=e.status_code,
                                      response_body=e.response_body) from e
        data = (response or {}).get("domain_record")
        if not data:
            raise RecordNotFoundError(f"Record not found: {record_id}")
        return self.parse_record(data)
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        domain = normalize_domain(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {domain}")
        response = self._request("POST", f"/domains/{domain}/records", body=self.record_to_json(record))
        data = (response or {}).get("domain_record")
        return self.parse_record(data) if data else record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        if not record.id:
            raise ValidationError("Record ID is required for update")
        self.validate_record(record)
        domain = normalize_domain(domain)
        logger.info(f"Updating record {record.id} in {domain}")
        response = self._request("PUT", f"/domains/{domain}/records/{record.id}",
                                 body=self.record_to_json(record))
        data = (response or {}).get("domain_record")
        return self.parse_record(data) if data else record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        domain = normalize_domain(domain)
        logger.info(f"Deleting record {record_id} from {domain}")
        self._request("DELETE", f"/domains/{domain}/records/{record_id}")
