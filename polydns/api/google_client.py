"""
Google Cloud DNS API Client
Handles managed zones and resource record sets through the Cloud DNS v1 API
"""

from typing import Any, Dict, Iterable, List, Optional

from polydns.api.auth import BearerTokenAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.models import (
    CompositeKey,
    Record,
    RecordType,
    Zone,
    normalize_domain,
    parse_timestamp,
    to_fqdn,
    to_relative
)
from polydns.api.pagination import TokenPaginator
from polydns.api.rrdata import decode_rrdata, encode_rrdata
from polydns.utils.logger import get_logger


logger = get_logger(__name__)


class GoogleCloudDNSClient(BaseDNSProvider):
    """
    Google Cloud DNS client.
    
    Records have no stable IDs: identity is (name, type). Every mutation
    is an atomic change of additions and deletions. Names are stored
    fully-qualified with a trailing dot and returned relative to the zone.
    """
    
    BASE_URL = "https://dns.googleapis.com/dns/v1"
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
    MIN_TTL = 0
    MAX_TTL = 604800
    
    def __init__(self, project_id: str, access_token: str, **kwargs):
        """
        Initialize Google Cloud DNS client.
        
        Args:
            project_id: Google Cloud project ID
            access_token: OAuth2 access token with the Cloud DNS scope
        """
        super().__init__(BearerTokenAuth(access_token), **kwargs)
        self.project_id = project_id
        logger.info(f"Google Cloud DNS Client initialized - Project: {project_id}")
    
    @property
    def zones_path(self) -> str:
        return f"/projects/{self.project_id}/managedZones"
    
    @staticmethod
    def managed_zone_name(domain: str) -> str:
        """Derive a managed-zone name from a domain ("example.com" -> "example-com")."""
        return normalize_domain(domain).replace(".", "-")
    
    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    
    @staticmethod
    def parse_zone(data: Dict[str, Any]) -> Zone:
        return Zone(
            id=data.get("name", ""),
            domain=normalize_domain(data.get("dnsName", "")),
            created_at=parse_timestamp(data.get("creationTime")),
            name_servers=[ns.rstrip(".") for ns in data.get("nameServers") or []]
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any], zone_name: str) -> Record:
        record_type = RecordType.from_string(data.get("type"))
        rrdatas = data.get("rrdatas") or []
        if len(rrdatas) > 1:
            logger.debug(f"{data.get('name')} {record_type.value} has {len(rrdatas)} values; using the first")
        fields = decode_rrdata(record_type, rrdatas[0], zone_name) if rrdatas else {"value": ""}
        return Record(
            name=to_relative(data.get("name", ""), zone_name),
            type=record_type,
            ttl=data.get("ttl"),
            **fields
        )
    
    @staticmethod
    def record_to_json(record: Record, zone_name: str) -> Dict[str, Any]:
        return {
            "name": to_fqdn(record.name, zone_name),
            "type": record.type.value,
            "ttl": record.ttl,
            "rrdatas": [encode_rrdata(record, zone_name)],
        }
    
    @staticmethod
    def deletion_for(record: Record, zone_name: str) -> Dict[str, Any]:
        """Deletion entry for a whole rrset (empty rrdatas)."""
        return {
            "name": to_fqdn(record.name, zone_name),
            "type": record.type.value,
            "ttl": record.ttl,
            "rrdatas": [],
        }
    
    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Google Cloud DNS managed zones")
        items = TokenPaginator(self.executor, self.zones_path, items_key="managedZones",
                               max_pages=self.max_pages)
        return [self.parse_zone(item) for item in items]
    
    def get_zone(self, domain: str) -> Zone:
        items = TokenPaginator(
            self.executor,
            self.zones_path,
            items_key="managedZones",
            params={"dnsName": f"{normalize_domain(domain)}."},
            max_pages=self.max_pages
        )
        return self.find_zone([self.parse_zone(item) for item in items], domain)
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Google Cloud DNS zone: {domain}")
        body = {
            "name": self.managed_zone_name(domain),
            "dnsName": f"{domain}.",
            "description": "Managed by polydns",
        }
        response = self._request("POST", self.zones_path, body=body)
        logger.info(f"✅ Zone created: {domain}")
        return self.parse_zone(response or body)
    
    def delete_zone(self, domain: str) -> None:
        zone = self.get_zone(domain)
        logger.info(f"Deleting Google Cloud DNS zone: {zone.domain} ({zone.id})")
        self._request("DELETE", f"{self.zones_path}/{zone.id}")
    
    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    
    def _list_for_zone(
        self,
        zone: Zone,
        record_type: Optional[RecordType] = None,
        name: Optional[str] = None
    ) -> List[Record]:
        # The API only accepts a type filter together with a name filter
        params = {}
        if name is not None:
            params["name"] = to_fqdn(name, zone.domain)
            if record_type is not None:
                params["type"] = record_type.value
        items = TokenPaginator(
            self.executor,
            f"{self.zones_path}/{zone.id}/rrsets",
            items_key="rrsets",
            params=params,
            max_pages=self.max_pages
        )
        records = self._parse_records(items, lambda item: self.parse_record(item, zone.domain))
        return self._filter_records(records, record_type)
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        if record_type is not None:
            record_type = RecordType.from_string(record_type)
        return self._list_for_zone(self.get_zone(domain), record_type)
    
    def _find(self, zone: Zone, key: CompositeKey) -> Record:
        return self.match_records(self._list_for_zone(zone, key.type, name=key.name), key)
    
    def get_record(self, domain: str, record_id: str) -> Record:
        return self._find(self.get_zone(domain), CompositeKey.parse(record_id))
    
    def _apply_change(
        self,
        zone: Zone,
        additions: Optional[List[Dict[str, Any]]] = None,
        deletions: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        change: Dict[str, Any] = {}
        if additions:
            change["additions"] = additions
        if deletions:
            change["deletions"] = deletions
        logger.debug(f"Submitting change to {zone.id}: "
                     f"{len(additions or [])} additions, {len(deletions or [])} deletions")
        return self._request("POST", f"{self.zones_path}/{zone.id}/changes", body=change) or {}
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {zone.domain}")
        response = self._apply_change(zone, additions=[self.record_to_json(record, zone.domain)])
        added = response.get("additions") or []
        return self.parse_record(added[0], zone.domain) if added else record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        existing = self._find(zone, CompositeKey(record.name, record.type))
        logger.info(f"Updating {record.type.value} record {record.name} in {zone.domain}")
        response = self._apply_change(
            zone,
            additions=[self.record_to_json(record, zone.domain)],
            deletions=[self.deletion_for(existing, zone.domain)]
        )
        added = response.get("additions") or []
        return self.parse_record(added[0], zone.domain) if added else record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        zone = self.get_zone(domain)
        existing = self._find(zone, CompositeKey.parse(record_id))
        logger.info(f"Deleting {existing.type.value} record {existing.name} from {zone.domain}")
        self._apply_change(zone, deletions=[self.deletion_for(existing, zone.domain)])
    
    # ------------------------------------------------------------------
    # Atomic bulk operations
    # ------------------------------------------------------------------
    
    def create_records_bulk(self, domain: str, records: Iterable[Record]) -> List[Record]:
        """
        Create several records in one atomic change.
        """
        records = list(records)
        for record in records:
            self.validate_record(record)
        if not records:
            return []
        zone = self.get_zone(domain)
        logger.info(f"Creating {len(records)} records in {zone.domain} as one change")
        self._apply_change(zone, additions=[self.record_to_json(r, zone.domain) for r in records])
        return [r.copy() for r in records]
    
    def delete_records_bulk(self, domain: str, record_ids: Iterable[str]) -> None:
        """
        Delete several records in one atomic change.
        """
        zone = self.get_zone(domain)
        current = self._list_for_zone(zone)
        deletions = [
            self.deletion_for(self.match_records(current, CompositeKey.parse(record_id)), zone.domain)
            for record_id in record_ids
        ]
        if deletions:
            logger.info(f"Deleting {len(deletions)} records from {zone.domain} as one change")
            self._apply_change(zone, deletions=deletions)
