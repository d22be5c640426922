"""
Vultr DNS API Client
Handles zones and records through the Vultr v2 API
"""

from typing import Any, Dict, List, Optional

from polydns.api.auth import BearerTokenAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import NotFoundError, RecordNotFoundError, ValidationError, ZoneNotFoundError
from polydns.api.models import Record, RecordType, Zone, normalize_domain, parse_timestamp
from polydns.api.pagination import OffsetPaginator
from polydns.utils.logger import get_logger
from polydns.utils.validators import validate_email


logger = get_logger(__name__)


class VultrClient(BaseDNSProvider):
    """
    Vultr DNS client.
    
    Zones are addressed by domain name; records carry provider-issued IDs
    and keep their value in ``data``.
    """
    
    BASE_URL = "https://api.vultr.com/v2"
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
    
    def __init__(self, api_key: str, **kwargs):
        """
        Initialize Vultr API client.
        
        Args:
            api_key: Vultr personal access token
            **kwargs: Transport options passed to BaseDNSProvider
        """
        super().__init__(BearerTokenAuth(api_key), **kwargs)
        logger.info("Vultr Client initialized")
    
    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    
    @staticmethod
    def parse_zone(data: Dict[str, Any]) -> Zone:
        domain = data.get("domain", "")
        servers = data.get("dns_server") or []
        if isinstance(servers, str):
            servers = [servers]
        return Zone(
            id=str(data.get("id") or domain),
            domain=normalize_domain(domain),
            created_at=parse_timestamp(data.get("date_created")),
            name_servers=list(servers)
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any]) -> Record:
        record_type = RecordType.from_string(data.get("type"))
        return Record(
            id=str(data.get("id", "")),
            name=data.get("name") or "@",
            type=record_type,
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
            "name": "" if record.name == "@" else record.name,
            "type": record.type.value,
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
    
    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Vultr zones")
        items = OffsetPaginator(
            self.executor,
            "/domains",
            items_key="domains",
            page_size=self.page_size,
            max_pages=self.max_pages,
            total_items=("meta", "total"),
            identity=lambda item: item.get("domain")
        )
        return [self.parse_zone(item) for item in items]
    
    def get_zone(self, domain: str) -> Zone:
        domain = normalize_domain(domain)
        try:
            response = self._request("GET", f"/domains/{domain}")
        except NotFoundError as e:
            raise ZoneNotFoundError(f"Zone not found: {domain}", status_code=e.status_code,
                                    response_body=e.response_body) from e
        return self.parse_zone((response or {}).get("domain") or response or {})
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Vultr zone: {domain}")
        response = self._request("POST", "/domains", body={"domain": domain})
        zone_data = (response or {}).get("domain") or {"domain": domain}
        logger.info(f"✅ Zone created: {domain}")
        return self.parse_zone(zone_data)
    
    def delete_zone(self, domain: str) -> None:
        domain = normalize_domain(domain)
        logger.info(f"Deleting Vultr zone: {domain}")
        self._request("DELETE", f"/domains/{domain}")
    
    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        domain = normalize_domain(domain)
        params = {}
        if record_type is not None:
            record_type = RecordType.from_string(record_type)
            params["type"] = record_type.value
        
        items = OffsetPaginator(
            self.executor,
            f"/domains/{domain}/records",
            items_key="records",
            params=params,
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
        return self.parse_record((response or {}).get("record") or response or {})
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        domain = normalize_domain(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {domain}")
        response = self._request("POST", f"/domains/{domain}/records", body=self.record_to_json(record))
        data = (response or {}).get("record")
        return self.parse_record(data) if data else record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        if not record.id:
            raise ValidationError("Record ID is required for update")
        self.validate_record(record)
        domain = normalize_domain(domain)
        logger.info(f"Updating record {record.id} in {domain}")
        # Vultr answers PATCH with 204 No Content
        self._request("PATCH", f"/domains/{domain}/records/{record.id}", body=self.record_to_json(record))
        return record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        domain = normalize_domain(domain)
        logger.info(f"Deleting record {record_id} from {domain}")
        self._request("DELETE", f"/domains/{domain}/records/{record_id}")
    
    # ------------------------------------------------------------------
    # SOA and DNSSEC pass-through
    # ------------------------------------------------------------------
    
    def get_soa(self, domain: str) -> Dict[str, Any]:
        """
        Get the zone's SOA settings.
        
        Returns:
            Dictionary with "nsprimary" and "email"
        """
        response = self._request("GET", f"/domains/{normalize_domain(domain)}/soa") or {}
        return response.get("dns_soa") or response
    
    def update_soa(self, domain: str, nsprimary: str, email: str) -> None:
        """
        Update the zone's primary name server and contact email.
        
        Raises:
            ValidationError: If the email is malformed
        """
        body = {"nsprimary": nsprimary, "email": validate_email(email)}
        self._request("PATCH", f"/domains/{normalize_domain(domain)}/soa", body=body)
    
    def get_dnssec(self, domain: str) -> List[str]:
        """Return the zone's DNSSEC DS/DNSKEY records as text lines."""
        response = self._request("GET", f"/domains/{normalize_domain(domain)}/dnssec")
        if isinstance(response, list):
            return response
        return list((response or {}).get("dns_sec") or (response or {}).get("dnssec") or [])
    
    def enable_dnssec(self, domain: str) -> None:
        self._request("PUT", f"/domains/{normalize_domain(domain)}/dnssec")
    
    def disable_dnssec(self, domain: str) -> None:
        self._request("DELETE", f"/domains/{normalize_domain(domain)}/dnssec")
