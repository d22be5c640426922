"""
AWS Route 53 API Client
Handles hosted zones and record sets with SigV4-signed requests
"""

import uuid
from typing import Any, Dict, Iterable, List, Optional

from polydns.api.auth import AwsSigV4Auth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.models import (
    CompositeKey,
    Record,
    RecordType,
    Zone,
    normalize_domain,
    same_domain,
    to_fqdn,
    to_relative
)
from polydns.api.rrdata import decode_rrdata, encode_rrdata
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

API_VERSION = "2013-04-01"
DEFAULT_RRSET_TTL = 300


def extract_zone_id(value: str) -> str:
    """
    Strip the resource prefix from a hosted zone ID.
    
    Example:
        "/hostedzone/Z1D633PJN98FT9" -> "Z1D633PJN98FT9"
    """
    marker = "/hostedzone/"
    if marker in value:
        return value.split(marker, 1)[1]
    return value


def _unescape_name(name: str) -> str:
    # Route 53 returns "*" as the octal escape \052
    return name.replace("\\052", "*")


class Route53Client(BaseDNSProvider):
    """
    AWS Route 53 client.
    
    Every request is signed with SigV4. Records have no IDs: a record is
    identified by its name (or "TYPE/name"). All writes are POSTed
    ``Changes`` batches with UPSERT or DELETE actions.
    """
    
    BASE_URL = "https://route53.amazonaws.com"
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
    MAX_TTL = 2147483647
    
    def __init__(self, access_key: str, secret_key: str, region: str = "us-east-1", **kwargs):
        """
        Initialize Route 53 client.
        
        Args:
            access_key: AWS access key ID
            secret_key: AWS secret access key
            region: Signing region (Route 53 is global and signs in us-east-1)
        """
        super().__init__(AwsSigV4Auth(access_key, secret_key, region=region), **kwargs)
        self.region = region
        logger.info(f"Route53 Client initialized - Region: {region}")
    
    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    
    @staticmethod
    def parse_zone(data: Dict[str, Any], delegation_set: Optional[Dict[str, Any]] = None) -> Zone:
        servers = (delegation_set or {}).get("NameServers") or []
        return Zone(
            id=extract_zone_id(data.get("Id", "")),
            domain=normalize_domain(data.get("Name", "")),
            name_servers=[ns.rstrip(".") for ns in servers]
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any], zone_name: str) -> Record:
        record_type = RecordType.from_string(data.get("Type"))
        values = [rr.get("Value", "") for rr in data.get("ResourceRecords") or []]
        if len(values) > 1:
            logger.debug(f"{data.get('Name')} {record_type.value} has {len(values)} values; using the first")
        fields = decode_rrdata(record_type, values[0], zone_name) if values else {"value": ""}
        return Record(
            name=to_relative(_unescape_name(data.get("Name", "")), zone_name),
            type=record_type,
            ttl=data.get("TTL", DEFAULT_RRSET_TTL),
            **fields
        )
    
    @staticmethod
    def record_to_rrset(record: Record, zone_name: str) -> Dict[str, Any]:
        return {
            "Name": to_fqdn(record.name, zone_name),
            "Type": record.type.value,
            "TTL": record.ttl,
            "ResourceRecords": [{"Value": encode_rrdata(record, zone_name)}],
        }
    
    @staticmethod
    def change(action: str, rrset: Dict[str, Any]) -> Dict[str, Any]:
        return {"Action": action, "ResourceRecordSet": rrset}
    
    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Route53 hosted zones")
        response = self._request("GET", f"/{API_VERSION}/hostedzones")
        return [self.parse_zone(item) for item in (response or {}).get("HostedZones") or []]
    
    def get_zone(self, domain: str) -> Zone:
        return self.find_zone(self.list_zones(), domain)
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Route53 hosted zone: {domain}")
        body = {"Name": f"{domain}.", "CallerReference": str(uuid.uuid4())}
        response = self._request("POST", f"/{API_VERSION}/hostedzone", body=body) or {}
        logger.info(f"✅ Hosted zone created: {domain}")
        return self.parse_zone(response.get("HostedZone") or {"Name": domain},
                               response.get("DelegationSet"))
    
    def delete_zone(self, domain: str) -> None:
        zone = self.get_zone(domain)
        logger.info(f"Deleting Route53 hosted zone: {zone.domain} ({zone.id})")
        self._request("DELETE", f"/{API_VERSION}/hostedzone/{zone.id}")
    
    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    
    def _rrset_path(self, zone: Zone) -> str:
        return f"/{API_VERSION}/hostedzone/{zone.id}/rrset"
    
    def _raw_rrsets(self, zone: Zone) -> List[Dict[str, Any]]:
        response = self._request("GET", self._rrset_path(zone))
        return list((response or {}).get("ResourceRecordSets") or [])
    
    def _find_rrset(self, zone: Zone, rrsets: List[Dict[str, Any]], key: CompositeKey) -> Dict[str, Any]:
        """
        Resolve a key to the raw record set, so deletes can echo it back exactly.
        """
        match = self.match_records(self._parse_records(rrsets, lambda item: self.parse_record(item, zone.domain)), key)
        for rrset in rrsets:
            if (
                rrset.get("Type") == match.type.value
                and same_domain(_unescape_name(rrset.get("Name", "")), to_fqdn(match.name, zone.domain))
            ):
                return rrset
        return self.record_to_rrset(match, zone.domain)
    
    def _submit(self, zone: Zone, changes: List[Dict[str, Any]]) -> Any:
        logger.debug(f"Submitting {len(changes)} change(s) to hosted zone {zone.id}")
        return self._request("POST", self._rrset_path(zone), body={"Changes": changes})
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        zone = self.get_zone(domain)
        records = self._parse_records(self._raw_rrsets(zone), lambda item: self.parse_record(item, zone.domain))
        return self._filter_records(records, record_type)
    
    def get_record(self, domain: str, record_id: str) -> Record:
        zone = self.get_zone(domain)
        records = self._parse_records(self._raw_rrsets(zone), lambda item: self.parse_record(item, zone.domain))
        return self.match_records(records, CompositeKey.parse(record_id))
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Creating {record.type.value} record {record.name} in {zone.domain}")
        self._submit(zone, [self.change("UPSERT", self.record_to_rrset(record, zone.domain))])
        return record.copy()
    
    def update_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        zone = self.get_zone(domain)
        logger.info(f"Updating {record.type.value} record {record.name} in {zone.domain}")
        self._submit(zone, [self.change("UPSERT", self.record_to_rrset(record, zone.domain))])
        return record.copy()
    
    def delete_record(self, domain: str, record_id: str) -> None:
        zone = self.get_zone(domain)
        rrset = self._find_rrset(zone, self._raw_rrsets(zone), CompositeKey.parse(record_id))
        logger.info(f"Deleting {rrset.get('Type')} record {rrset.get('Name')} from {zone.domain}")
        self._submit(zone, [self.change("DELETE", rrset)])
    
    # ------------------------------------------------------------------
    # Atomic bulk operations
    # ------------------------------------------------------------------
    
    def create_records_bulk(self, domain: str, records: Iterable[Record]) -> List[Record]:
        """
        UPSERT several records in a single Changes batch.
        """
        records = list(records)
        for record in records:
            self.validate_record(record)
        if not records:
            return []
        zone = self.get_zone(domain)
        logger.info(f"Upserting {len(records)} records in {zone.domain} as one batch")
        self._submit(zone, [self.change("UPSERT", self.record_to_rrset(r, zone.domain)) for r in records])
        return [r.copy() for r in records]
    
    def delete_records_bulk(self, domain: str, record_ids: Iterable[str]) -> None:
        """
        DELETE several records in a single Changes batch.
        """
        zone = self.get_zone(domain)
        rrsets = self._raw_rrsets(zone)
        changes = [
            self.change("DELETE", self._find_rrset(zone, rrsets, CompositeKey.parse(record_id)))
            for record_id in record_ids
        ]
        if changes:
            logger.info(f"Deleting {len(changes)} records from {zone.domain} as one batch")
            self._submit(zone, changes)
