"""
Base DNS Provider Interface
Abstract base class for DNS provider implementations
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import requests
from requests.auth import AuthBase

from polydns.api.exceptions import (
    AmbiguousMatchError,
    RecordNotFoundError,
    ValidationError,
    ZoneNotFoundError
)
from polydns.api.http import DEFAULT_TIMEOUT, RateLimitInfo, RequestExecutor
from polydns.api.models import (
    COMMON_RECORD_TYPES,
    CompositeKey,
    Record,
    RecordType,
    Zone,
    normalize_domain,
    same_domain
)
from polydns.api.pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE
from polydns.utils.logger import get_logger
from polydns.utils.validators import DomainValidator, RecordValidator


logger = get_logger(__name__)


def _normalize_name(name: str) -> str:
    name = normalize_domain(name)
    return name or "@"


class BaseDNSProvider(ABC):
    """
    Abstract base class for DNS providers.
    
    Subclasses implement the zone/record CRUD contract for one provider.
    Request execution and validation are composed in, not inherited:
    each instance owns a RequestExecutor and uses RecordValidator.
    """
    
    BASE_URL: str = ""
    SUPPORTED_RECORD_TYPES: Sequence[RecordType] = COMMON_RECORD_TYPES
    MIN_TTL = 60
    MAX_TTL = 86400
    # Out-of-range TTL values the provider still accepts
    EXTRA_TTLS: Sequence[int] = ()
    
    def __init__(
        self,
        auth: Optional[AuthBase],
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        default_headers: Optional[Dict[str, str]] = None
    ):
        self.executor = RequestExecutor(
            self.BASE_URL,
            auth=auth,
            session=session,
            timeout=timeout,
            retry_attempts=retry_attempts,
            default_headers=default_headers
        )
        self.validator = RecordValidator
        self.page_size = page_size
        self.max_pages = max_pages
    
    # ------------------------------------------------------------------
    # Zone operations
    # ------------------------------------------------------------------
    
    @abstractmethod
    def list_zones(self) -> List[Zone]:
        """
        List every zone in the account.
        
        Returns:
            Zones in provider order, each returned exactly once
        """
        pass
    
    @abstractmethod
    def get_zone(self, domain: str) -> Zone:
        """
        Look up one zone by domain name.
        
        Args:
            domain: Zone name; case and a trailing dot are ignored
            
        Raises:
            ZoneNotFoundError: If no zone matches
        """
        pass
    
    @abstractmethod
    def create_zone(self, domain: str) -> Zone:
        """Create a zone and return it as the provider reports it."""
        pass
    
    @abstractmethod
    def delete_zone(self, domain: str) -> None:
        """Delete a zone and all of its records."""
        pass
    
    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------
    
    @abstractmethod
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        """
        List the records of a zone.
        
        Args:
            domain: Zone name
            record_type: Optional filter; None returns every type
        """
        pass
    
    @abstractmethod
    def get_record(self, domain: str, record_id: str) -> Record:
        """
        Fetch one record.
        
        Args:
            domain: Zone name
            record_id: Provider record ID, or "TYPE/name" / "name" for
                       providers without stable IDs
                       
        Raises:
            RecordNotFoundError: If nothing matches
            AmbiguousMatchError: If a name-only key matches several records
        """
        pass
    
    @abstractmethod
    def create_record(self, domain: str, record: Record) -> Record:
        """
        Create a record after validating it.
        
        Raises:
            ValidationError: Before any network call if the record is invalid
        """
        pass
    
    @abstractmethod
    def update_record(self, domain: str, record: Record) -> Record:
        """
        Replace an existing record, identified by ``record.identity``.
        
        Raises:
            ValidationError: Before any network call if the record is invalid
        """
        pass
    
    @abstractmethod
    def delete_record(self, domain: str, record_id: str) -> None:
        """Delete one record by ID (or composite key)."""
        pass
    
    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------
    
    def create_records_bulk(self, domain: str, records: Iterable[Record]) -> List[Record]:
        """
        Create several records one by one.
        
        Best effort: stops at the first failure and re-raises it. Records
        created before the failure are left in place.
        """
        records = list(records)
        for record in records:
            self.validate_record(record)
        
        created = []
        for index, record in enumerate(records, start=1):
            logger.debug(f"Bulk create {index}/{len(records)}: {record.type.value} {record.name}")
            created.append(self.create_record(domain, record))
        return created
    
    def delete_records_bulk(self, domain: str, record_ids: Iterable[str]) -> None:
        """
        Delete several records one by one, aborting on the first failure.
        """
        for record_id in record_ids:
            self.delete_record(domain, record_id)
    
    # ------------------------------------------------------------------
    # Capabilities and validation
    # ------------------------------------------------------------------
    
    def get_provider_name(self) -> str:
        """Get provider name (class name without the Client suffix)"""
        return self.__class__.__name__.replace("Client", "")
    
    @property
    def supported_record_types(self) -> List[RecordType]:
        return list(self.SUPPORTED_RECORD_TYPES)
    
    def supports_record_type(self, record_type: Union[RecordType, str]) -> bool:
        try:
            return RecordType.from_string(record_type) in self.SUPPORTED_RECORD_TYPES
        except ValidationError:
            return False
    
    @property
    def min_ttl(self) -> int:
        return self.MIN_TTL
    
    @property
    def max_ttl(self) -> int:
        return self.MAX_TTL
    
    @property
    def rate_limit(self) -> RateLimitInfo:
        """Rate-limit headers seen on the last response."""
        return self.executor.rate_limit
    
    def validate_domain(self, domain: str) -> str:
        return DomainValidator.validate(domain)
    
    def validate_record(self, record: Record) -> Record:
        """
        Check that the provider supports the record and that it is well-formed.
        
        Raises:
            ValidationError: If the record cannot be sent to this provider
        """
        if not self.supports_record_type(record.type):
            raise ValidationError(
                f"{self.get_provider_name()} does not support {record.type.value} records"
            )
        return self.validator.validate(record, self.MIN_TTL, self.MAX_TTL, self.EXTRA_TTLS)
    
    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------
    
    def _request(self, method: str, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.executor.execute(method, path, body=body, params=params)
    
    @staticmethod
    def find_zone(zones: Iterable[Zone], domain: str) -> Zone:
        """
        Pick the zone matching a domain, ignoring case and a trailing dot.
        
        Raises:
            ZoneNotFoundError: If no zone matches
        """
        for zone in zones:
            if same_domain(zone.domain, domain):
                return zone
        raise ZoneNotFoundError(f"Zone not found: {normalize_domain(domain)}")
    
    @staticmethod
    def match_records(records: Iterable[Record], key: CompositeKey) -> Record:
        """
        Resolve a composite key against a list of records.
        
        Raises:
            RecordNotFoundError: If nothing matches
            AmbiguousMatchError: If more than one record matches
        """
        wanted = _normalize_name(key.name)
        matches = [
            r for r in records
            if _normalize_name(r.name) == wanted and (key.type is None or r.type is key.type)
        ]
        if not matches:
            raise RecordNotFoundError(f"Record not found: {key}")
        if len(matches) > 1:
            types = ", ".join(sorted(r.type.value for r in matches))
            raise AmbiguousMatchError(
                f"Record key {key} matches {len(matches)} records ({types}); "
                "use TYPE/name to pick one"
            )
        return matches[0].copy()
    
    def _filter_records(self, records: Iterable[Record], record_type: Optional[RecordType]) -> List[Record]:
        if record_type is None:
            return list(records)
        record_type = RecordType.from_string(record_type)
        return [r for r in records if r.type is record_type]
    
    def _parse_records(self, items: Iterable[Dict[str, Any]], parser) -> List[Record]:
        """
        Map raw provider items to Records, skipping unknown record types.
        """
        records = []
        for item in items:
            try:
                records.append(parser(item))
            except ValidationError as e:
                logger.debug(f"Skipping unsupported record: {e.message}")
        return records
