"""
Tests for the Google Cloud DNS client.

Run:
    python -m pytest tests/test_google_client.py -v
"""

import pytest

from polydns.api.exceptions import AmbiguousMatchError, RecordNotFoundError, ZoneNotFoundError
from polydns.api.google_client import GoogleCloudDNSClient
from polydns.api.models import Record, RecordType


PROJECT = "my-project"
ZONE_JSON = {
    "name": "example-com",
    "dnsName": "example.com.",
    "creationTime": "2024-03-01T12:00:00.000Z",
    "nameServers": ["ns-cloud-a1.googledomains.com.", "ns-cloud-a2.googledomains.com."],
}
ZONES_PATH = f"/dns/v1/projects/{PROJECT}/managedZones"


def _client(transport):
    return GoogleCloudDNSClient(PROJECT, "ya29.token", session=transport.session)


def _zone_lookup(transport):
    transport.reply(200, {"managedZones": [ZONE_JSON]})


# ===========================================================================
# 1. Zones
# ===========================================================================

class TestZones:

    def test_get_zone_filters_by_dns_name(self, transport):
        _zone_lookup(transport)
        zone = _client(transport).get_zone("example.com")

        assert zone.id == "example-com"
        assert zone.domain == "example.com"
        assert zone.name_servers == ["ns-cloud-a1.googledomains.com", "ns-cloud-a2.googledomains.com"]
        assert transport.path() == ZONES_PATH
        assert transport.query() == {"dnsName": "example.com."}

    def test_get_zone_missing(self, transport):
        transport.reply(200, {"managedZones": []})
        with pytest.raises(ZoneNotFoundError):
            _client(transport).get_zone("example.com")

    def test_list_zones_follows_tokens(self, transport):
        transport.reply(200, {"managedZones": [ZONE_JSON], "nextPageToken": "abc"})
        transport.reply(200, {"managedZones": [{"name": "example-org", "dnsName": "example.org."}]})

        zones = _client(transport).list_zones()

        assert [z.domain for z in zones] == ["example.com", "example.org"]
        assert transport.query(1) == {"pageToken": "abc"}

    def test_create_zone(self, transport):
        transport.reply(200, ZONE_JSON)
        _client(transport).create_zone("example.com")
        assert transport.body() == {
            "name": "example-com",
            "dnsName": "example.com.",
            "description": "Managed by polydns",
        }

    def test_managed_zone_name(self):
        assert GoogleCloudDNSClient.managed_zone_name("Sub.Example.com.") == "sub-example-com"


# ===========================================================================
# 2. Records
# ===========================================================================

class TestRecords:

    def test_list_records_parses_rrdata(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "example.com.", "type": "MX", "ttl": 3600, "rrdatas": ["10 mail.example.com."]},
            {"name": "example.com.", "type": "TXT", "ttl": 300, "rrdatas": ['"v=spf1 -all"']},
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1", "192.0.2.2"]},
        ]})

        records = _client(transport).list_records("example.com")

        mx, txt, a = records
        assert (mx.name, mx.priority, mx.value) == ("@", 10, "mail.example.com")
        assert txt.value == "v=spf1 -all"
        assert (a.name, a.value, a.id) == ("www", "192.0.2.1", "")
        assert transport.path() == f"{ZONES_PATH}/example-com/rrsets"
        assert transport.query() == {}

    def test_type_filter_is_client_side_without_name(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "example.com.", "type": "MX", "ttl": 3600, "rrdatas": ["10 mail.example.com."]},
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
        ]})
        records = _client(transport).list_records("example.com", "A")
        assert [r.type for r in records] == [RecordType.A]
        assert "type" not in transport.query()

    def test_create_record_posts_addition(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"additions": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
        ]})
        created = _client(transport).create_record("example.com", Record(name="www", type="A", value="192.0.2.1"))

        assert transport.path() == f"{ZONES_PATH}/example-com/changes"
        assert transport.body() == {"additions": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
        ]}
        assert created.name == "www"

    def test_create_txt_is_quoted(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {})
        _client(transport).create_record("example.com", Record(name="@", type="TXT", value="v=spf1 -all"))
        assert transport.body()["additions"][0]["rrdatas"] == ['"v=spf1 -all"']
        assert transport.body()["additions"][0]["name"] == "example.com."

    def test_delete_by_bare_name(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
        ]})
        transport.reply(200, {})

        _client(transport).delete_record("example.com", "www")

        assert transport.query(1) == {"name": "www.example.com."}
        body = transport.body()
        assert body == {"deletions": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": []},
        ]}
        assert "additions" not in body

    def test_typed_key_sends_type_with_name(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "www.example.com.", "type": "TXT", "ttl": 300, "rrdatas": ['"hello"']},
        ]})
        record = _client(transport).get_record("example.com", "TXT/www")
        assert transport.query(1) == {"name": "www.example.com.", "type": "TXT"}
        assert record.value == "hello"

    def test_ambiguous_bare_name(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
            {"name": "www.example.com.", "type": "TXT", "ttl": 300, "rrdatas": ['"hello"']},
        ]})
        with pytest.raises(AmbiguousMatchError):
            _client(transport).delete_record("example.com", "www")
        assert len(transport.sent) == 2

    def test_missing_record(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": []})
        with pytest.raises(RecordNotFoundError):
            _client(transport).get_record("example.com", "A/ftp")

    def test_update_replaces_rrset(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
        ]})
        transport.reply(200, {})

        _client(transport).update_record("example.com", Record(name="www", type="A", value="192.0.2.9", ttl=600))

        assert transport.body() == {
            "additions": [{"name": "www.example.com.", "type": "A", "ttl": 600, "rrdatas": ["192.0.2.9"]}],
            "deletions": [{"name": "www.example.com.", "type": "A", "ttl": 300, "rrdatas": []}],
        }

    def test_bulk_create_is_one_change(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {})
        records = [
            Record(name="a", type="A", value="192.0.2.1"),
            Record(name="b", type="A", value="192.0.2.2"),
        ]
        created = _client(transport).create_records_bulk("example.com", records)

        assert len(transport.sent) == 2
        assert [a["name"] for a in transport.body()["additions"]] == ["a.example.com.", "b.example.com."]
        assert [r.name for r in created] == ["a", "b"]

    def test_bulk_delete_is_one_change(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {"rrsets": [
            {"name": "a.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.1"]},
            {"name": "b.example.com.", "type": "A", "ttl": 300, "rrdatas": ["192.0.2.2"]},
        ]})
        transport.reply(200, {})

        _client(transport).delete_records_bulk("example.com", ["a", "A/b"])

        assert [d["name"] for d in transport.body()["deletions"]] == ["a.example.com.", "b.example.com."]


# ===========================================================================
# 3. Apex targets
# ===========================================================================

class TestApexTargets:

    def test_cname_to_apex_is_fully_qualified(self, transport):
        _zone_lookup(transport)
        transport.reply(200, {})
        _client(transport).create_record("example.com", Record(name="www", type="CNAME", value="@"))
        assert transport.body()["additions"][0]["rrdatas"] == ["example.com."]

    def test_apex_target_reads_back_as_marker(self):
        record = GoogleCloudDNSClient.parse_record(
            {"name": "www.example.com.", "type": "CNAME", "ttl": 3600, "rrdatas": ["example.com."]},
            "example.com"
        )
        assert (record.name, record.value) == ("www", "@")
