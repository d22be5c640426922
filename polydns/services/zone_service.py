"""
Zone Service
High-level workflows on top of a DNS provider client
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import AmbiguousMatchError, DNSError, ValidationError
from polydns.api.models import Record, RecordType, Zone, normalize_domain
from polydns.api.provider_factory import get_dns_provider
from polydns.api.rrdata import encode_rrdata
from polydns.utils.logger import get_logger

logger = get_logger(__name__)


class ZoneServiceError(Exception):
    """Base exception for zone service errors"""
    pass


def _same_name(a: str, b: str) -> bool:
    return (normalize_domain(a) or "@") == (normalize_domain(b) or "@")


class ZoneService:
    """
    High-level zone and record operations.
    Works the same way against every supported DNS provider.
    """
    
    def __init__(self, provider: Optional[BaseDNSProvider] = None, provider_name: Optional[str] = None):
        """
        Initialize zone service.
        
        Args:
            provider: Optional provider instance. If None, creates from config.
            provider_name: Optional provider name (e.g. "CLOUDFLARE").
                          If None, reads from config.
                          
        Example:
            # Use configured provider
            service = ZoneService()
            
            # Use specific provider
            service = ZoneService(provider_name="ROUTE53")
        """
        if provider:
            self.client = provider
        else:
            self.client = get_dns_provider(provider_name)
        
        logger.info(f"Zone service initialized - Provider: {self.client.get_provider_name()}")
    
    def list_zones(self) -> List[Zone]:
        try:
            zones = self.client.list_zones()
            logger.info(f"Found {len(zones)} zone(s)")
            return zones
        except DNSError as e:
            logger.error(f"Failed to list zones: {str(e)}")
            raise ZoneServiceError(f"Failed to list zones: {str(e)}") from e
    
    def describe_zone(self, domain: str) -> Dict[str, Any]:
        """
        Summarise a zone and its records.
        
        Args:
            domain: Zone name
            
        Returns:
            Dictionary:
            {
                "zone": Zone,
                "record_count": int,
                "records_by_type": {"A": 3, "MX": 1, ...}
            }
            
        Raises:
            ZoneServiceError: If the zone cannot be read
        """
        try:
            zone = self.client.get_zone(domain)
            records = self.client.list_records(zone.domain)
        except DNSError as e:
            logger.error(f"Failed to describe zone {domain}: {str(e)}")
            raise ZoneServiceError(f"Failed to describe zone {domain}: {str(e)}") from e
        
        counts = Counter(r.type.value for r in records)
        return {
            "zone": zone,
            "record_count": len(records),
            "records_by_type": dict(sorted(counts.items())),
        }
    
    def find_records(
        self,
        domain: str,
        name: Optional[str] = None,
        record_type: Optional[RecordType] = None
    ) -> List[Record]:
        """
        List records filtered by name and/or type.
        
        Names compare case-insensitively; "@" and "" both mean the apex.
        """
        try:
            if record_type is not None:
                record_type = RecordType.from_string(record_type)
            records = self.client.list_records(domain, record_type)
        except DNSError as e:
            raise ZoneServiceError(f"Failed to list records for {domain}: {str(e)}") from e
        
        if name is not None:
            records = [r for r in records if _same_name(r.name, name)]
        return records
    
    def upsert_record(self, domain: str, record: Record) -> Record:
        """
        Update the record with the same name and type, or create it.
        
        Raises:
            ZoneServiceError: If the write fails or several records share
                              the name and type
        """
        matches = self.find_records(domain, record.name, record.type)
        
        try:
            if not matches:
                logger.info(f"No {record.type.value} record named {record.name}; creating it")
                return self.client.create_record(domain, record)
            
            if len(matches) > 1:
                raise AmbiguousMatchError(
                    f"{len(matches)} {record.type.value} records named {record.name}; "
                    "update one by ID instead"
                )
            
            updated = record.copy()
            updated.id = matches[0].id
            logger.info(f"Updating existing {record.type.value} record {record.name}")
            return self.client.update_record(domain, updated)
        
        except DNSError as e:
            logger.error(f"❌ Upsert failed for {record.name}: {str(e)}")
            raise ZoneServiceError(f"Upsert failed for {record.name}: {str(e)}") from e
    
    def import_records(self, domain: str, records: Iterable[Record]) -> List[Record]:
        """
        Create many records using the provider's bulk semantics.
        
        Sequential providers stop at the first failure and keep what was
        already created; Google and Route 53 apply the batch atomically.
        """
        records = list(records)
        try:
            created = self.client.create_records_bulk(domain, records)
            logger.info(f"✅ Imported {len(created)} record(s) into {domain}")
            return created
        except ValidationError as e:
            raise ZoneServiceError(f"Invalid record in import: {str(e)}") from e
        except DNSError as e:
            logger.error(f"❌ Import into {domain} stopped: {str(e)}")
            raise ZoneServiceError(f"Import into {domain} failed: {str(e)}") from e
    
    def export_zone(self, domain: str) -> str:
        """
        Render a zone's records as BIND zone-file text.
        
        Returns:
            Zone file contents starting with an $ORIGIN line
        """
        domain = normalize_domain(domain)
        records = self.find_records(domain)
        
        lines = [f"$ORIGIN {domain}."]
        for r in records:
            lines.append(f"{r.name}\t{r.ttl}\tIN\t{r.type.value}\t{encode_rrdata(r, domain)}")
        return "\n".join(lines) + "\n"
