"""
Input validation utilities for zones, record names and record values
"""

import ipaddress
import re
from typing import Iterable, Optional

from polydns.api.exceptions import ValidationError
from polydns.api.models import Record, RecordType


class DomainValidator:
    """Validator for zone (domain) names"""
    
    # RFC-compliant domain regex, trailing dot allowed
    DOMAIN_REGEX = re.compile(
        r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}\.?$'
    )
    
    @classmethod
    def is_valid(cls, domain: str) -> bool:
        return bool(domain) and len(domain.rstrip('.')) <= 253 and bool(cls.DOMAIN_REGEX.match(domain))
    
    @classmethod
    def validate(cls, domain: str) -> str:
        """
        Validate a zone name.
        
        Args:
            domain: Domain name to validate
            
        Returns:
            Cleaned domain name (lowercase, stripped, no trailing dot)
            
        Raises:
            ValidationError: If domain is invalid
        """
        if not domain or not domain.strip():
            raise ValidationError("Domain name cannot be empty")
        
        # Clean the domain
        domain = domain.strip().lower()
        
        # Remove http(s):// if present
        domain = re.sub(r'^https?://', '', domain)
        domain = domain.rstrip('/')
        
        if len(domain.rstrip('.')) > 253:  # RFC 1035
            raise ValidationError("Domain name too long (max 253 characters)")
        
        if not cls.DOMAIN_REGEX.match(domain):
            raise ValidationError(
                f"Invalid domain format: {domain}. "
                "Domain must contain only letters, numbers, hyphens and dots."
            )
        
        return domain.rstrip('.')


class EmailValidator:
    """Validator for email addresses (SOA contacts)"""
    
    EMAIL_REGEX = re.compile(
        r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    )
    
    @classmethod
    def validate(cls, email: str) -> str:
        """
        Validate an email address.
        
        Returns:
            Cleaned email address (lowercase, stripped)
            
        Raises:
            ValidationError: If email is invalid
        """
        if not email:
            raise ValidationError("Email address cannot be empty")
        
        email = email.strip().lower()
        
        if not cls.EMAIL_REGEX.match(email):
            raise ValidationError(f"Invalid email format: {email}")
        
        return email


class RecordValidator:
    """
    Type-specific syntax checks for DNS records.
    
    Runs before any network call; a failed check raises ValidationError
    so nothing reaches the provider.
    """
    
    IPV4_REGEX = re.compile(r'^(\d{1,3}\.){3}\d{1,3}$')
    # Record names may carry wildcard and underscore service labels
    LABEL_REGEX = re.compile(r'^(\*|[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9_])?)$')
    
    MAX_TXT_LENGTH = 255
    
    @classmethod
    def is_ipv4(cls, value: str) -> bool:
        if not cls.IPV4_REGEX.match(value):
            return False
        return all(int(octet) <= 255 for octet in value.split('.'))
    
    @classmethod
    def is_ipv6(cls, value: str) -> bool:
        if "%" in value:
            return False
        try:
            ipaddress.IPv6Address(value)
        except ValueError:
            return False
        return True
    
    @classmethod
    def is_hostname(cls, value: str) -> bool:
        """Domain-name syntax, or the apex marker "@"."""
        return value == '@' or DomainValidator.is_valid(value)
    
    @classmethod
    def is_valid_name(cls, name: str) -> bool:
        if name == '@':
            return True
        name = name.rstrip('.')
        if not name or len(name) > 253:
            return False
        return all(cls.LABEL_REGEX.match(label) for label in name.split('.'))
    
    @classmethod
    def validate_value(cls, record_type: RecordType, value: str) -> bool:
        """
        Check a record value against its type's grammar.
        
        Args:
            record_type: Record type (or its name)
            value: Record value as the caller supplied it
            
        Returns:
            True if the value is well-formed for the type
        """
        record_type = RecordType.from_string(record_type)
        if value is None:
            return False
        value = str(value)
        
        if record_type.is_text_record:
            return len(value) <= cls.MAX_TXT_LENGTH
        
        value = value.strip()
        if not value or len(value) > record_type.max_value_length:
            return False
        
        if record_type.is_ip_record:
            if record_type is RecordType.A:
                return cls.is_ipv4(value)
            return cls.is_ipv6(value)
        if record_type.is_name_record:
            return cls.is_hostname(value)
        # SOA and CAA only need a non-empty value of bounded length
        return True
    
    @classmethod
    def validate(
        cls,
        record: Record,
        min_ttl: int = 60,
        max_ttl: int = 86400,
        extra_ttls: Iterable[int] = ()
    ) -> Record:
        """
        Validate a whole record before it is sent to a provider.
        
        Args:
            record: Record to validate
            min_ttl: Smallest TTL the provider accepts
            max_ttl: Largest TTL the provider accepts
            extra_ttls: Out-of-range TTLs the provider still accepts
                        (e.g. Cloudflare's automatic TTL of 1)
            
        Returns:
            The same record, for chaining
            
        Raises:
            ValidationError: On the first rule the record breaks
        """
        t = record.type
        
        if not cls.is_valid_name(record.name):
            raise ValidationError(f"Invalid record name: {record.name!r}")
        
        if not str(record.value).strip():
            raise ValidationError(f"{t.value} record value cannot be empty")
        
        if not cls.validate_value(t, record.value):
            if t is RecordType.TXT:
                raise ValidationError(
                    f"TXT record value too long ({len(record.value)} > {cls.MAX_TXT_LENGTH})"
                )
            raise ValidationError(f"Invalid {t.value} record value: {record.value!r}")
        
        ttl = record.ttl
        if ttl not in tuple(extra_ttls) and not (min_ttl <= ttl <= max_ttl):
            raise ValidationError(f"TTL {ttl} outside allowed range {min_ttl}-{max_ttl}")
        
        if t.requires_priority and record.priority < 0:
            raise ValidationError(f"{t.value} priority must be non-negative")
        
        if t is RecordType.SRV:
            if record.weight < 0:
                raise ValidationError("SRV weight must be non-negative")
            if not (0 < record.port < 65536):
                raise ValidationError(f"SRV port must be between 1 and 65535, got {record.port}")
        
        if t is RecordType.CAA:
            if not (0 <= record.flags <= 255):
                raise ValidationError(f"CAA flags must be between 0 and 255, got {record.flags}")
            if not record.tag:
                raise ValidationError("CAA tag cannot be empty")
        
        return record


def validate_domain(domain: str) -> str:
    """Convenience function for domain validation"""
    return DomainValidator.validate(domain)


def validate_email(email: str) -> str:
    """Convenience function for email validation"""
    return EmailValidator.validate(email)


def validate_value(record_type: RecordType, value: str) -> bool:
    """Convenience function for record value checks"""
    return RecordValidator.validate_value(record_type, value)


def validate_record(
    record: Record,
    min_ttl: int = 60,
    max_ttl: int = 86400,
    extra_ttls: Optional[Iterable[int]] = None
) -> Record:
    """Convenience function for whole-record validation"""
    return RecordValidator.validate(record, min_ttl, max_ttl, extra_ttls or ())
