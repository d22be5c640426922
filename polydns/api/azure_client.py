"""
Azure DNS API Client
Manages DNS zones and record sets through Azure Resource Manager
"""

from typing import Any, Dict, List, Optional

from polydns.api.auth import OAuth2ClientCredentialsAuth
from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import NotFoundError, RecordNotFoundError, ZoneNotFoundError
from polydns.api.models import CompositeKey, Record, RecordType, Zone, normalize_domain
from polydns.api.rrdata import collapse_target, expand_target
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

API_VERSION = "2018-05-01"


def record_set_properties(record: Record, zone_name: str = "") -> Dict[str, Any]:
    """
    Build the ARM ``properties`` object for a single-value record set.
    
    A host-name value of "@" is written as the zone name.
    """
    props: Dict[str, Any] = {"TTL": record.ttl}
    t = record.type
    target = expand_target(record.value, zone_name) if t.is_name_record else record.value
    
    if t is RecordType.A:
        props["ARecords"] = [{"ipv4Address": record.value}]
    elif t is RecordType.AAAA:
        props["AAAARecords"] = [{"ipv6Address": record.value}]
    elif t is RecordType.CNAME:
        props["CNAMERecord"] = {"cname": target}
    elif t is RecordType.TXT:
        props["TXTRecords"] = [{"value": [record.value]}]
    elif t is RecordType.MX:
        props["MXRecords"] = [{"preference": record.priority, "exchange": target}]
    elif t is RecordType.SRV:
        props["SRVRecords"] = [{
            "priority": record.priority,
            "weight": record.weight,
            "port": record.port,
            "target": target,
        }]
    elif t is RecordType.CAA:
        props["CAARecords"] = [{"flags": record.flags, "tag": record.tag, "value": record.value}]
    elif t is RecordType.NS:
        props["NSRecords"] = [{"nsdname": target}]
    elif t is RecordType.PTR:
        props["PTRRecords"] = [{"ptrdname": target}]
    return props


def _first(props: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    for key in keys:
        value = props.get(key)
        if isinstance(value, list):
            if len(value) > 1:
                logger.debug(f"Record set has {len(value)} values in {key}; using the first")
            return value[0] if value else {}
        if isinstance(value, dict):
            return value
    return {}


class AzureClient(BaseDNSProvider):
    """
    Azure DNS client.
    
    Zones live under an ARM resource path; record identity is the
    composite ``"<TYPE>/<relative name>"``. Creates and updates are
    idempotent PUTs of whole record sets.
    """
    
    BASE_URL = "https://management.azure.com"
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
    # SOA can be read but not written
    LISTED_RECORD_TYPES = SUPPORTED_RECORD_TYPES + (RecordType.SOA,)
    MIN_TTL = 1
    MAX_TTL = 2147483647
    
    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        subscription_id: str,
        resource_group: str,
        auth: Optional[OAuth2ClientCredentialsAuth] = None,
        **kwargs
    ):
        """
        Initialize Azure DNS client.
        
        Args:
            tenant_id: Azure AD tenant
            client_id: Service principal application ID
            client_secret: Service principal secret
            subscription_id: Subscription holding the resource group
            resource_group: Resource group holding the DNS zones
            auth: Optional pre-built token strategy (shares its token cache)
        """
        if auth is None:
            auth = OAuth2ClientCredentialsAuth(
                tenant_id,
                client_id,
                client_secret,
                session=kwargs.get("session"),
                timeout=kwargs.get("timeout", 30)
            )
        super().__init__(auth, **kwargs)
        self.subscription_id = subscription_id
        self.resource_group = resource_group
        logger.info(f"Azure Client initialized - Resource group: {resource_group}")
    
    @property
    def base_path(self) -> str:
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.Network"
        )
    
    def zone_path(self, domain: str) -> str:
        return f"{self.base_path}/dnsZones/{normalize_domain(domain)}"
    
    def _arm(self, method: str, path: str, body: Any = None) -> Any:
        return self._request(method, path, body=body, params={"api-version": API_VERSION})
    
    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------
    
    def parse_zone(self, data: Dict[str, Any]) -> Zone:
        domain = normalize_domain(data.get("name", ""))
        props = data.get("properties") or {}
        return Zone(
            id=data.get("id") or self.zone_path(domain),
            domain=domain,
            name_servers=[ns.rstrip(".") for ns in props.get("nameServers") or []]
        )
    
    @staticmethod
    def parse_record(data: Dict[str, Any], zone_name: str = "") -> Record:
        """
        Map an ARM record set to a Record, taking the first value of the set.
        
        Host-name values equal to ``zone_name`` read back as "@".
        """
        type_name = (data.get("type") or "").rsplit("/", 1)[-1]
        record_type = RecordType.from_string(type_name)
        name = data.get("name") or "@"
        props = data.get("properties") or {}
        
        fields: Dict[str, Any] = {}
        if record_type is RecordType.A:
            value = _first(props, "ARecords").get("ipv4Address", "")
        elif record_type is RecordType.AAAA:
            value = _first(props, "AAAARecords").get("ipv6Address", "")
        elif record_type is RecordType.CNAME:
            value = _first(props, "CNAMERecord", "cnameRecord").get("cname", "")
        elif record_type is RecordType.TXT:
            value = "".join(_first(props, "TXTRecords").get("value") or [])
        elif record_type is RecordType.MX:
            mx = _first(props, "MXRecords")
            value = mx.get("exchange", "")
            fields["priority"] = mx.get("preference")
        elif record_type is RecordType.SRV:
            srv = _first(props, "SRVRecords")
            value = srv.get("target", "")
            fields.update(priority=srv.get("priority"), weight=srv.get("weight"), port=srv.get("port"))
        elif record_type is RecordType.CAA:
            caa = _first(props, "CAARecords")
            value = caa.get("value", "")
            fields.update(flags=caa.get("flags"), tag=caa.get("tag"))
        elif record_type is RecordType.NS:
            value = _first(props, "NSRecords").get("nsdname", "")
        elif record_type is RecordType.PTR:
            value = _first(props, "PTRRecords").get("ptrdname", "")
        else:
            soa = _first(props, "SOARecord", "soaRecord")
            value = " ".join(str(soa.get(key, "")) for key in (
                "host", "email", "serialNumber", "refreshTime",
                "retryTime", "expireTime", "minimumTTL"
            )).strip()
        
        if record_type.is_name_record:
            value = collapse_target(value, zone_name)
        
        return Record(
            id=f"{record_type.value}/{name}",
            name=name,
            type=record_type,
            value=value,
            ttl=props.get("TTL"),
            **fields
        )
    
    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------
    
    def list_zones(self) -> List[Zone]:
        logger.info("Listing Azure DNS zones")
        response = self._arm("GET", f"{self.base_path}/dnsZones")
        return [self.parse_zone(item) for item in (response or {}).get("value") or []]
    
    def get_zone(self, domain: str) -> Zone:
        try:
            response = self._arm("GET", self.zone_path(domain))
        except NotFoundError as e:
            raise ZoneNotFoundError(f"Zone not found: {normalize_domain(domain)}",
                                    status_code=e.status_code, response_body=e.response_body) from e
        return self.parse_zone(response or {"name": domain})
    
    def create_zone(self, domain: str) -> Zone:
        domain = self.validate_domain(domain)
        logger.info(f"Creating Azure DNS zone: {domain}")
        response = self._arm("PUT", self.zone_path(domain), body={"location": "global"})
        logger.info(f"✅ Zone created: {domain}")
        return self.parse_zone(response or {"name": domain})
    
    def delete_zone(self, domain: str) -> None:
        logger.info(f"Deleting Azure DNS zone: {normalize_domain(domain)}")
        self._arm("DELETE", self.zone_path(domain))
    
    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    
    def list_records(self, domain: str, record_type: Optional[RecordType] = None) -> List[Record]:
        if record_type is not None:
            types = [RecordType.from_string(record_type)]
        else:
            types = list(self.LISTED_RECORD_TYPES)
        
        records = []
        for t in types:
            response = self._arm("GET", f"{self.zone_path(domain)}/{t.value}")
            records.extend(self._parse_records(
                (response or {}).get("value") or [],
                lambda item: self.parse_record(item, domain)
            ))
        return records
    
    def _resolve_key(self, domain: str, record_id: str) -> CompositeKey:
        key = CompositeKey.parse(record_id)
        if key.type is None:
            match = self.match_records(self.list_records(domain), key)
            key = CompositeKey(match.name, match.type)
        return key
    
    def get_record(self, domain: str, record_id: str) -> Record:
        key = CompositeKey.parse(record_id)
        if key.type is None:
            return self.match_records(self.list_records(domain), key)
        try:
            response = self._arm("GET", f"{self.zone_path(domain)}/{key.type.value}/{key.name}")
        except NotFoundError as e:
            raise RecordNotFoundError(f"Record not found: {key}", status_code=e.status_code,
                                      response_body=e.response_body) from e
        return self.parse_record(response or {}, domain)
    
    def _put_record(self, domain: str, record: Record) -> Record:
        path = f"{self.zone_path(domain)}/{record.type.value}/{record.name}"
        response = self._arm("PUT", path, body={"properties": record_set_properties(record, domain)})
        if response:
            return self.parse_record(response, domain)
        saved = record.copy()
        saved.id = f"{record.type.value}/{record.name}"
        return saved
    
    def create_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        logger.info(f"Creating {record.type.value} record {record.name} in {normalize_domain(domain)}")
        return self._put_record(domain, record)
    
    def update_record(self, domain: str, record: Record) -> Record:
        self.validate_record(record)
        logger.info(f"Updating {record.type.value} record {record.name} in {normalize_domain(domain)}")
        return self._put_record(domain, record)
    
    def delete_record(self, domain: str, record_id: str) -> None:
        key = self._resolve_key(domain, record_id)
        logger.info(f"Deleting record {key} from {normalize_domain(domain)}")
        self._arm("DELETE", f"{self.zone_path(domain)}/{key.type.value}/{key.name}")
