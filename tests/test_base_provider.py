"""
Tests for the shared provider behaviour: lookups, key matching,
capabilities and sequential bulk operations.

Run:
    python -m pytest tests/test_base_provider.py -v
"""

from unittest.mock import MagicMock

import pytest

from polydns.api.base_provider import BaseDNSProvider
from polydns.api.exceptions import (
    AmbiguousMatchError,
    APIError,
    RecordNotFoundError,
    ValidationError,
    ZoneNotFoundError
)
from polydns.api.models import CompositeKey, Record, RecordType, Zone


class StubClient(BaseDNSProvider):
    """Minimal concrete provider that keeps created records in memory."""

    BASE_URL = "https://stub.example.test"

    def __init__(self, **kwargs):
        super().__init__(None, **kwargs)
        self.created = []
        self.fail_on = None

    def list_zones(self):
        return []

    def get_zone(self, domain):
        return self.find_zone(self.list_zones(), domain)

    def create_zone(self, domain):
        return Zone(id=domain, domain=domain)

    def delete_zone(self, domain):
        return None

    def list_records(self, domain, record_type=None):
        return []

    def get_record(self, domain, record_id):
        return self.match_records(self.list_records(domain), CompositeKey.parse(record_id))

    def create_record(self, domain, record):
        self.validate_record(record)
        if self.fail_on is not None and record.name == self.fail_on:
            raise APIError(f"rejected {record.name}")
        self.created.append(record)
        return record.copy()

    def update_record(self, domain, record):
        return record.copy()

    def delete_record(self, domain, record_id):
        self.created = [r for r in self.created if r.name != record_id]


RECORDS = [
    Record(name="@", type="A", value="192.0.2.1"),
    Record(name="www", type="A", value="192.0.2.2"),
    Record(name="www", type="TXT", value="hello"),
    Record(name="mail", type="MX", value="mx.example.com"),
]


# ===========================================================================
# 1. Zone lookup
# ===========================================================================

class TestFindZone:

    def test_matches_ignoring_case_and_dot(self):
        zones = [Zone(id="1", domain="other.org"), Zone(id="2", domain="example.com")]
        assert BaseDNSProvider.find_zone(zones, "EXAMPLE.com.").id == "2"

    def test_missing_zone(self):
        with pytest.raises(ZoneNotFoundError, match="example.com"):
            BaseDNSProvider.find_zone([], "example.com")


# ===========================================================================
# 2. Composite key matching
# ===========================================================================

class TestMatchRecords:

    def test_typed_key(self):
        match = BaseDNSProvider.match_records(RECORDS, CompositeKey("www", RecordType.TXT))
        assert match.value == "hello"

    def test_bare_unique_name(self):
        assert BaseDNSProvider.match_records(RECORDS, CompositeKey("mail")).type is RecordType.MX

    def test_bare_name_case_insensitive(self):
        assert BaseDNSProvider.match_records(RECORDS, CompositeKey("MAIL")).value == "mx.example.com"

    def test_apex(self):
        assert BaseDNSProvider.match_records(RECORDS, CompositeKey("@")).value == "192.0.2.1"

    def test_ambiguous(self):
        with pytest.raises(AmbiguousMatchError, match="2 records"):
            BaseDNSProvider.match_records(RECORDS, CompositeKey("www"))

    def test_not_found(self):
        with pytest.raises(RecordNotFoundError):
            BaseDNSProvider.match_records(RECORDS, CompositeKey("ftp"))

    def test_returns_copy(self):
        match = BaseDNSProvider.match_records(RECORDS, CompositeKey("mail"))
        match.value = "changed.example.com"
        assert RECORDS[3].value == "mx.example.com"


# ===========================================================================
# 3. Capabilities and validation
# ===========================================================================

class TestCapabilities:

    def test_provider_name(self):
        assert StubClient().get_provider_name() == "Stub"

    def test_default_supported_types(self):
        client = StubClient()
        assert client.supports_record_type("mx")
        assert not client.supports_record_type(RecordType.SRV)
        assert not client.supports_record_type("HINFO")

    def test_unsupported_type_rejected(self):
        record = Record(name="_sip._tcp", type="SRV", value="sip.example.com", port=5060)
        with pytest.raises(ValidationError, match="does not support SRV"):
            StubClient().validate_record(record)

    def test_ttl_bounds_exposed(self):
        client = StubClient()
        assert (client.min_ttl, client.max_ttl) == (60, 86400)

    def test_executor_configured(self):
        client = StubClient(timeout=5, retry_attempts=2)
        assert client.executor.timeout == 5
        assert client.executor.retry_attempts == 2
        assert client.executor.base_url == "https://stub.example.test"
        assert client.rate_limit.remaining is None


# ===========================================================================
# 4. Sequential bulk operations
# ===========================================================================

class TestBulk:

    def test_bulk_create_validates_before_sending(self):
        client = StubClient()
        records = [
            Record(name="a", type="A", value="192.0.2.1"),
            Record(name="b", type="A", value="not-an-ip"),
        ]
        with pytest.raises(ValidationError):
            client.create_records_bulk("example.com", records)
        assert client.created == []

    def test_bulk_create_stops_at_first_failure(self):
        client = StubClient()
        client.fail_on = "b"
        records = [Record(name=n, type="A", value="192.0.2.1") for n in ("a", "b", "c")]
        with pytest.raises(APIError):
            client.create_records_bulk("example.com", records)
        assert [r.name for r in client.created] == ["a"]

    def test_bulk_create_returns_created(self):
        client = StubClient()
        records = [Record(name=n, type="A", value="192.0.2.1") for n in ("a", "b")]
        assert [r.name for r in client.create_records_bulk("example.com", records)] == ["a", "b"]

    def test_bulk_delete_stops_at_first_failure(self):
        client = StubClient()
        client.delete_record = MagicMock(side_effect=[None, APIError("boom"), None])
        with pytest.raises(APIError):
            client.delete_records_bulk("example.com", ["1", "2", "3"])
        assert client.delete_record.call_count == 2
