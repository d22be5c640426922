"""
Bunny.net DNS API Client
Handles DNS zones and records through the Bunny.net core API
"""

from typing import Any, Dict, List, Optional

from polydns.api.auth import StaticHeaderAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import NotFoundError, RecordNotFoundError, ValidationError
from polydns.api.models import Record, RecordType, Zone, normalize_domain, parse_timestamp
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

# Bunny record type codes (writes must use the numeric form)
TYPE_CODES = {
    RecordType.A: 0,
    RecordType.AAAA: 1,
    RecordType.CNAME: 2,
    RecordType.TXT: 3,
    RecordType.MX: 4,
    RecordType.SRV: 8,
    RecordType.CAA: 9,
    RecordType.PTR: 10,
    RecordType.NS: 12,
}
CODE_TYPES = {code: record_type for record_type, code in TYPE_CODES.items()}


def parse_bunny_type(value: Any) -> RecordType:
    """
    Read a Bunny record type, given either as a numeric code or a name.
    
    Raises:
        ValidationError: For codes with no DNS equivalent (redirects, pull zones, scripts)
    """
    if isinstance(value, bool):
        raise ValidationError(f"Unknown Bunny record type: {value!r}")
    if isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit()):
        code = int(value)
        if code not in CODE_TYPES:
            raise ValidationError(f"Unsupported Bunny record type code: {code}")
        return CODE_TYPES[code]
    return RecordType.from_string(value)


def _items(response: Any, *keys: str) -> List[Dict[str, Any]]:
    """Accept a bare JSON array or an object wrapping one under any of ``keys``."""
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        for key in keys:
            if isinstance(response.get(key), list):
                return response[key]
    return []


class BunnyClient(BaseDNSProvider):
    """
    Bunny.net DNS client.
    
    Authenticates with the account key in the ``AccessKey`` header. Zones
    are numeric and resolved by listing all zones and filtering by domain.
    """
    
    BASE_URL = "https://api.bunny.net"
    SUPPORTED_RECORD_TYPES = tuple(TYPE_CODES)
    
    def __init__(self, api_key: str, **kwargs):
        """
        Initialize Bunny API client.
        
        Args:
            api_key: Bunny.net account API key
        """
        super().__init__(StaticHeaderAuth("AccessKey", api_key), **kwargs)
        logger.info("Bunny Client initialized")
    
    @staticmethod
    def parse_zone(data: Dict[str, Any]) -> Zone:
        servers = [data[key] for key in ("Nameserver1", "Nameserver2") if data.get(key)]
        return Zone(
            id=str(data.get("Id", "")),
            domain=normalize_domain(data.get("Domain", "")),
            created_at=parse_timestamp(data.get("DateCreated")),
            updated_at=parse_timestamp(data.get("DateModified")),
            name_servers=servers
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any]) -> Record:
        return Record(
            id=str(data.get("Id", "")),
            name=data.get("Name") or "@",
            type=parse_bunny_type(data.get("Type")),
            value=data.get("Value", ""),
            ttl=data.get("Ttl"),
            priority=data.get("Priority"),
            weight=data.get("Weight"),
            port=data.get("Port"),
            flags=data.get("Flags"),
            tag=data.get("Tag")
        )
    
    @staticmethod
    def record_to_json(record: Record) -> Dict[str, Any]:
        body = {
            "Type": TYPE_CODES[record.type],
            "Value": record.value,
            "Name": "" if record.name == "@" else record.name,
            "Ttl": record.ttl,
        }
        if record.type.requires_priority:
            body["Priority"] = record.priority
        if record.type is RecordType.SRV:
            body["Weight"] = record.weight
            body["Port"] = record.port
        if record.type is RecordType.CAA:
            body["Flags"] = record.flags
            body["Tag"] = record.tag
        return body
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Bunny DNS zones")
        response = self._request("GET", "/dnszone")
        return [self.parse_zone(item) for item in _items(response, "Items")]
    
    def get_zone(self, domain: str) -> Zone:
        return self.find_zone(self.list_zones(), domain)
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Bunny DNS zone: {domain}")
        response = self._request("POST", "/dnszone", body={"Domain": domain})
        logger.info(f"✅ Zone created: {domain}")
        if isinstance(response, dict) and response.get("Id") is not None:
            return self.parse_zone(response)
        return self.get_zone(domain)
    
    def delete_zone(self, domain: str) -> None:
        zone = self.get_zone(domain)
        logger.info(f"Deleting Bunny DNS zone: {zone.domain} ({zone.id})")
        self._request("DELETE", f"/dnszone/{zone.id}")
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        zone = self.get_zone(domain)
        response = self._request("GET", f"/dnszone/{zone.id}/records")
        records = self._parse_records(_items(response, "Items", "Records"), self.parse_record)
        return self._filter_records(records, record_type)
    
    def get_record(self, domain: str, record_id: str) -> Record:
        zone = self.get_zone(domain)
        try:
            response = self._request("GET", f"/dnszone/{zone.id}/records/{record_id}")
        except NotFoundError as e:
            raise RecordNotFoundError(f"Record not found: {record_id}", status_code=e.status_code,
                                      response_body=e.response_body) from e
        if not response:
            raise RecordNotFoundError(f"Record not found: {record_id}")
        return self.parse_record(response)
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {zone.domain}")
        response = self._request("POST", f"/dnszone/{zone.id}/records", body=self.record_to_json(record))
        if isinstance(response, dict) and response.get("Id") is not None:
            return self.parse_record(response)
        return record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        if not record.id:
            raise ValidationError("Record ID is required for update")
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Updating record {record.id} in {zone.domain}")
        self._request("PUT", f"/dnszone/{zone.id}/records/{record.id}", body=self.record_to_json(record))
        return record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        zone = self.get_zone(domain)
        logger.info(f"Deleting record {record_id} from {zone.domain}")
        self._request("DELETE", f"/dnszone/{zone.id}/records/{record_id}")
