"""
Zone-file (rrdata) text encoding for record values
Shared by providers that store values the way a BIND zone file does
"""

import re
from typing import Any, Dict

from polydns.api.models import Record, RecordType, normalize_domain, same_domain


QUOTED_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')


def with_dot(name: str) -> str:
    return name if name.endswith(".") else f"{name}."


def expand_target(value: str, zone_name: str = "") -> str:
    """
    Replace the apex marker "@" in a host-name value with the zone name.
    
    Without a zone the value is returned unchanged.
    """
    if value.strip() == "@" and zone_name:
        return normalize_domain(zone_name)
    return value


def collapse_target(value: str, zone_name: str = "") -> str:
    """Inverse of expand_target: a value naming the zone apex reads back as "@"."""
    if zone_name and same_domain(value, zone_name):
        return "@"
    return value


def quote_txt(value: str) -> str:
    """Wrap a TXT value in quotes, escaping embedded quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote_txt(rrdata: str) -> str:
    """
    Join the quoted character-strings of a TXT rrdata.
    
    Unquoted data is returned unchanged.
    """
    parts = QUOTED_STRING.findall(rrdata)
    if not parts:
        return rrdata
    return "".join(re.sub(r'\\(.)', r'\1', part) for part in parts)


def encode_rrdata(record: Record, zone_name: str = "") -> str:
    """
    Render a record's value as rrdata text.
    
    Host-name values are fully qualified; "@" becomes the zone apex
    when ``zone_name`` is given.
    
    Examples:
        MX   -> '10 mail.example.com.'
        SRV  -> '10 5 5060 sip.example.com.'
        CAA  -> '0 issue "letsencrypt.org"'
        TXT  -> '"v=spf1 -all"'
    """
    t = record.type
    if t is RecordType.TXT:
        return quote_txt(record.value)
    if t is RecordType.CAA:
        return f'{record.flags} {record.tag} "{record.value}"'
    if not t.is_name_record:
        return record.value
    
    target = with_dot(expand_target(record.value, zone_name))
    if t is RecordType.MX:
        return f"{record.priority} {target}"
    if t is RecordType.SRV:
        return f"{record.priority} {record.weight} {record.port} {target}"
    return target


def decode_rrdata(record_type: RecordType, rrdata: str, zone_name: str = "") -> Dict[str, Any]:
    """
    Split rrdata text into Record fields.
    
    Host names that point at ``zone_name`` itself come back as "@".
    
    Returns:
        Dictionary with "value" and any type-conditional fields
    """
    rrdata = rrdata.strip()
    if record_type is RecordType.TXT:
        return {"value": unquote_txt(rrdata)}
    
    parts = rrdata.split()
    if record_type is RecordType.MX and len(parts) >= 2:
        return {"priority": int(parts[0]), "value": collapse_target(parts[1].rstrip("."), zone_name)}
    if record_type is RecordType.SRV and len(parts) >= 4:
        return {
            "priority": int(parts[0]),
            "weight": int(parts[1]),
            "port": int(parts[2]),
            "value": collapse_target(parts[3].rstrip("."), zone_name),
        }
    if record_type is RecordType.CAA and len(parts) >= 3:
        value = rrdata.split(None, 2)[2]
        return {"flags": int(parts[0]), "tag": parts[1], "value": unquote_txt(value)}
    if record_type in (RecordType.CNAME, RecordType.NS, RecordType.PTR):
        return {"value": collapse_target(rrdata.rstrip("."), zone_name)}
    return {"value": rrdata}
