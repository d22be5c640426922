"""
Provider-neutral DNS domain model
Zone, Record and RecordType shared by every provider client
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from polydns.api.exceptions import ValidationError


DEFAULT_TTL = 3600
DEFAULT_PRIORITY = 10


class RecordType(str, Enum):
    """DNS resource record kinds understood by every provider client."""
    
    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    TXT = "TXT"
    NS = "NS"
    SOA = "SOA"
    SRV = "SRV"
    PTR = "PTR"
    CAA = "CAA"
    
    def __str__(self):
        return self.value
    
    @classmethod
    def from_string(cls, text: str) -> "RecordType":
        """
        Parse a record type name, accepting common aliases.
        
        Args:
            text: Record type such as "mx", "A RECORD" or "ipv6"
            
        Returns:
            Matching RecordType
            
        Raises:
            ValidationError: If the text names no known record type
        """
        if isinstance(text, RecordType):
            return text
        key = str(text or "").strip().upper()
        if key in cls.__members__:
            return cls[key]
        if key in _ALIASES:
            return _ALIASES[key]
        raise ValidationError(f"Unknown record type: {text!r}")
    
    @property
    def requires_priority(self) -> bool:
        return self in (RecordType.MX, RecordType.SRV)
    
    @property
    def requires_weight(self) -> bool:
        return self is RecordType.SRV
    
    @property
    def requires_port(self) -> bool:
        return self is RecordType.SRV
    
    @property
    def requires_flags(self) -> bool:
        return self is RecordType.CAA
    
    @property
    def requires_tag(self) -> bool:
        return self is RecordType.CAA
    
    @property
    def is_ip_record(self) -> bool:
        return self in (RecordType.A, RecordType.AAAA)
    
    @property
    def is_name_record(self) -> bool:
        """True for types whose value is a host name."""
        return self in (RecordType.CNAME, RecordType.NS, RecordType.MX, RecordType.PTR, RecordType.SRV)
    
    @property
    def is_text_record(self) -> bool:
        return self is RecordType.TXT
    
    @property
    def is_commonly_supported(self) -> bool:
        return self in COMMON_RECORD_TYPES
    
    @property
    def default_ttl(self) -> int:
        return _TYPE_INFO[self]["default_ttl"]
    
    @property
    def max_value_length(self) -> int:
        return _TYPE_INFO[self]["max_length"]
    
    @property
    def default_priority(self) -> Optional[int]:
        if self is RecordType.MX:
            return DEFAULT_PRIORITY
        if self is RecordType.SRV:
            return 0
        return None
    
    @property
    def long_name(self) -> str:
        return _TYPE_INFO[self]["long_name"]
    
    @property
    def description(self) -> str:
        return _TYPE_INFO[self]["description"]
    
    @property
    def example_value(self) -> str:
        return _TYPE_INFO[self]["example"]
    
    @property
    def rfc(self) -> str:
        return _TYPE_INFO[self]["rfc"]


COMMON_RECORD_TYPES = (
    RecordType.A,
    RecordType.AAAA,
    RecordType.CNAME,
    RecordType.MX,
    RecordType.TXT,
    RecordType.NS,
)

_ALIASES = {
    "A RECORD": RecordType.A,
    "IPV4": RecordType.A,
    "IPV6": RecordType.AAAA,
    "CANONICAL": RecordType.CNAME,
    "ALIAS": RecordType.CNAME,
    "MAIL": RecordType.MX,
    "TEXT": RecordType.TXT,
    "SPF": RecordType.TXT,
    "NAMESERVER": RecordType.NS,
    "SERVICE": RecordType.SRV,
    "POINTER": RecordType.PTR,
    "REVERSE": RecordType.PTR,
    "CERTIFICATION": RecordType.CAA,
}

_TYPE_INFO: Dict[RecordType, Dict[str, Any]] = {
    RecordType.A: {
        "long_name": "IPv4 Address",
        "description": "Maps a host name to an IPv4 address",
        "example": "192.0.2.1",
        "rfc": "RFC 1035",
        "default_ttl": 300,
        "max_length": 15,
    },
    RecordType.AAAA: {
        "long_name": "IPv6 Address",
        "description": "Maps a host name to an IPv6 address",
        "example": "2001:db8::1",
        "rfc": "RFC 3596",
        "default_ttl": 300,
        "max_length": 45,
    },
    RecordType.CNAME: {
        "long_name": "Canonical Name",
        "description": "Aliases one host name to another",
        "example": "www.example.com",
        "rfc": "RFC 1035",
        "default_ttl": 3600,
        "max_length": 253,
    },
    RecordType.MX: {
        "long_name": "Mail Exchange",
        "description": "Names the mail server for a domain, ordered by priority",
        "example": "mail.example.com",
        "rfc": "RFC 1035",
        "default_ttl": 3600,
        "max_length": 253,
    },
    RecordType.TXT: {
        "long_name": "Text",
        "description": "Free-form text, used for SPF, DKIM and verification tokens",
        "example": "v=spf1 include:_spf.example.com ~all",
        "rfc": "RFC 1035",
        "default_ttl": 3600,
        "max_length": 255,
    },
    RecordType.NS: {
        "long_name": "Name Server",
        "description": "Delegates a zone to an authoritative name server",
        "example": "ns1.example.com",
        "rfc": "RFC 1035",
        "default_ttl": 86400,
        "max_length": 253,
    },
    RecordType.SOA: {
        "long_name": "Start of Authority",
        "description": "Authoritative information about the zone",
        "example": "ns1.example.com hostmaster.example.com 1 7200 3600 1209600 3600",
        "rfc": "RFC 1035",
        "default_ttl": 86400,
        "max_length": 512,
    },
    RecordType.SRV: {
        "long_name": "Service Locator",
        "description": "Locates a service by host and port, with priority and weight",
        "example": "sip.example.com",
        "rfc": "RFC 2782",
        "default_ttl": 3600,
        "max_length": 253,
    },
    RecordType.PTR: {
        "long_name": "Pointer",
        "description": "Maps an address back to a host name (reverse DNS)",
        "example": "host.example.com",
        "rfc": "RFC 1035",
        "default_ttl": 86400,
        "max_length": 253,
    },
    RecordType.CAA: {
        "long_name": "Certification Authority Authorization",
        "description": "Restricts which certificate authorities may issue for the domain",
        "example": "letsencrypt.org",
        "rfc": "RFC 8659",
        "default_ttl": 86400,
        "max_length": 255,
    },
}


@dataclass(frozen=True)
class OpaqueId:
    """Provider-issued record identifier."""
    
    value: str
    
    def __str__(self):
        return self.value


@dataclass(frozen=True)
class CompositeKey:
    """
    Record identity for providers without stable record IDs.
    
    The record type is optional: a bare name matches every type.
    """
    
    name: str
    type: Optional[RecordType] = None
    
    def __str__(self):
        if self.type is None:
            return self.name
        return f"{self.type.value}/{self.name}"
    
    @classmethod
    def parse(cls, text: str) -> "CompositeKey":
        """
        Parse "TYPE/name" or a bare "name" into a CompositeKey.
        """
        text = (text or "").strip()
        if "/" in text:
            prefix, _, rest = text.partition("/")
            try:
                return cls(name=rest or "@", type=RecordType.from_string(prefix))
            except ValidationError:
                pass
        return cls(name=text or "@")


RecordIdentity = Union[OpaqueId, CompositeKey]


@dataclass
class Record:
    """
    One DNS resource record inside a zone.
    
    Type-conditional fields are normalised on construction: fields the type
    does not use are cleared, and fields it requires get their defaults.
    """
    
    name: str
    type: RecordType
    value: str
    ttl: Optional[int] = None
    priority: Optional[int] = None
    weight: Optional[int] = None
    port: Optional[int] = None
    flags: Optional[int] = None
    tag: Optional[str] = None
    id: str = ""
    
    def __post_init__(self):
        self.type = RecordType.from_string(self.type)
        self.name = (self.name or "@").strip() or "@"
        self.value = "" if self.value is None else str(self.value)
        self.id = "" if self.id is None else str(self.id)
        if self.ttl is None:
            self.ttl = self.type.default_ttl
        
        t = self.type
        if t.requires_priority:
            self.priority = t.default_priority if self.priority is None else int(self.priority)
        else:
            self.priority = None
        if t.requires_weight:
            self.weight = 0 if self.weight is None else int(self.weight)
        else:
            self.weight = None
        if t.requires_port:
            self.port = 0 if self.port is None else int(self.port)
        else:
            self.port = None
        if t.requires_flags:
            self.flags = 0 if self.flags is None else int(self.flags)
        else:
            self.flags = None
        if t.requires_tag:
            self.tag = self.tag or ""
        else:
            self.tag = None
    
    @property
    def identity(self) -> RecordIdentity:
        if self.id:
            return OpaqueId(self.id)
        return CompositeKey(self.name, self.type)
    
    def copy(self) -> "Record":
        return replace(self)
    
    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary carrying only the fields this record type uses."""
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "value": self.value,
            "ttl": self.ttl,
        }
        for key in ("priority", "weight", "port", "flags", "tag"):
            if getattr(self, key) is not None:
                data[key] = getattr(self, key)
        return data


@dataclass
class Zone:
    """A DNS zone (domain) hosted by a provider."""
    
    id: str
    domain: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    name_servers: List[str] = field(default_factory=list)
    
    def copy(self) -> "Zone":
        return copy.deepcopy(self)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "domain": self.domain,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "name_servers": list(self.name_servers),
        }


def normalize_domain(name: str) -> str:
    """Lower-case a domain name and drop any trailing dot."""
    return (name or "").strip().rstrip(".").lower()


def same_domain(a: str, b: str) -> bool:
    return normalize_domain(a) == normalize_domain(b)


def to_fqdn(name: str, zone: str) -> str:
    """
    Qualify a record name against its zone, with a trailing dot.
    
    Examples:
        to_fqdn("www", "example.com")          -> "www.example.com."
        to_fqdn("@", "example.com")            -> "example.com."
        to_fqdn("www.example.com", "example.com") -> "www.example.com."
    """
    zone = normalize_domain(zone)
    name = (name or "@").strip()
    if name.endswith("."):
        return name
    if name in ("@", ""):
        return f"{zone}."
    lowered = name.lower()
    if lowered == zone or lowered.endswith(f".{zone}"):
        return f"{name}."
    return f"{name}.{zone}."


def to_relative(fqdn: str, zone: str) -> str:
    """
    Strip the zone suffix from a fully-qualified name ("@" for the apex).
    """
    zone = normalize_domain(zone)
    name = (fqdn or "").strip().rstrip(".")
    lowered = name.lower()
    if not name or lowered == zone:
        return "@"
    if lowered.endswith(f".{zone}"):
        return name[: -(len(zone) + 1)]
    return name


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or unix epoch into a datetime.
    
    Returns None for missing or unparseable values.
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
