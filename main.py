"""
Main CLI Entry Point
Unified command-line interface for DNS zone and record management
across Vultr, DigitalOcean, Cloudflare, Bunny, Azure, Google Cloud DNS and Route 53
"""

import sys
import argparse
from pathlib import Path

from polydns.api.models import Record, RecordType
from polydns.api.provider_factory import PROVIDER_NAMES
from polydns.services import ZoneService
from polydns.utils.logger import get_logger, set_level

logger = get_logger("polydns.cli")


def _service(args) -> ZoneService:
    return ZoneService(provider_name=args.provider)


def _record_from_args(args) -> Record:
    return Record(
        id=getattr(args, "id", None) or "",
        name=args.name,
        type=args.type,
        value=args.value,
        ttl=args.ttl,
        priority=args.priority,
        weight=args.weight,
        port=args.port,
        flags=args.flags,
        tag=args.tag
    )


def _print_records(title: str, records):
    print(f"\n{'='*60}")
    print(f" {title} ({len(records)})")
    print(f"{'='*60}")
    for r in records:
        extra = ""
        if r.priority is not None:
            extra += f" prio={r.priority}"
        if r.weight is not None:
            extra += f" weight={r.weight} port={r.port}"
        if r.flags is not None:
            extra += f" flags={r.flags} tag={r.tag}"
        ident = r.id or str(r.identity)
        print(f"  {ident:<24} {r.type.value:<6} {r.name:<24} {r.ttl:>6}  {r.value}{extra}")
    print(f"{'='*60}\n")


# ==================== ZONES ====================

def cmd_zones_list(args):
    """List all zones"""
    try:
        zones = _service(args).list_zones()
        
        print(f"\n{'='*60}")
        print(f" ZONES ({len(zones)})")
        print(f"{'='*60}")
        for zone in zones:
            created = zone.created_at.strftime("%Y-%m-%d") if zone.created_at else "N/A"
            print(f"  {zone.domain:<40} ID: {zone.id:<20} Created: {created}")
        print(f"{'='*60}\n")
    
    except Exception as e:
        logger.error(f"❌ Failed to list zones: {str(e)}")
        sys.exit(1)


def cmd_zones_get(args):
    """Show one zone with a record summary"""
    try:
        summary = _service(args).describe_zone(args.domain)
        zone = summary["zone"]
        
        print(f"\n{'='*60}")
        print(f" ZONE: {zone.domain}")
        print(f"{'='*60}")
        print(f"  ID:           {zone.id}")
        print(f"  Created:      {zone.created_at or 'N/A'}")
        print(f"  Updated:      {zone.updated_at or 'N/A'}")
        print(f"  Name servers: {', '.join(zone.name_servers) or 'N/A'}")
        print(f"  Records:      {summary['record_count']}")
        for record_type, count in summary["records_by_type"].items():
            print(f"    {record_type:<6} {count}")
        print(f"{'='*60}\n")
    
    except Exception as e:
        logger.error(f"❌ Failed to get zone: {str(e)}")
        sys.exit(1)


def cmd_zones_create(args):
    """Create a zone"""
    try:
        zone = _service(args).client.create_zone(args.domain)
        logger.info(f"✅ Zone created: {zone.domain} (ID: {zone.id})")
        if zone.name_servers:
            print(f"Delegate {zone.domain} to: {', '.join(zone.name_servers)}")
    
    except Exception as e:
        logger.error(f"❌ Failed to create zone: {str(e)}")
        sys.exit(1)


def cmd_zones_delete(args):
    """Delete a zone"""
    if not args.yes:
        logger.error(f"Refusing to delete {args.domain} without --yes")
        sys.exit(1)
    
    try:
        _service(args).client.delete_zone(args.domain)
        logger.info(f"✅ Zone deleted: {args.domain}")
    
    except Exception as e:
        logger.error(f"❌ Failed to delete zone: {str(e)}")
        sys.exit(1)


# ==================== RECORDS ====================

def cmd_records_list(args):
    """List records in a zone"""
    try:
        records = _service(args).find_records(args.domain, name=args.name, record_type=args.type)
        _print_records(f"RECORDS IN {args.domain}", records)
    
    except Exception as e:
        logger.error(f"❌ Failed to list records: {str(e)}")
        sys.exit(1)


def cmd_records_get(args):
    """Show one record"""
    try:
        record = _service(args).client.get_record(args.domain, args.record_id)
        _print_records(f"RECORD {args.record_id}", [record])
    
    except Exception as e:
        logger.error(f"❌ Failed to get record: {str(e)}")
        sys.exit(1)


def cmd_records_create(args):
    """Create a record"""
    try:
        record = _service(args).client.create_record(args.domain, _record_from_args(args))
        logger.info(f"✅ Created {record.type.value} record {record.name} ({record.id or record.identity})")
    
    except Exception as e:
        logger.error(f"❌ Failed to create record: {str(e)}")
        sys.exit(1)


def cmd_records_update(args):
    """Update a record (by ID, or by name and type for ID-less providers)"""
    try:
        record = _service(args).client.update_record(args.domain, _record_from_args(args))
        logger.info(f"✅ Updated {record.type.value} record {record.name}")
    
    except Exception as e:
        logger.error(f"❌ Failed to update record: {str(e)}")
        sys.exit(1)


def cmd_records_upsert(args):
    """Create a record, or update the one with the same name and type"""
    try:
        record = _service(args).upsert_record(args.domain, _record_from_args(args))
        logger.info(f"✅ Saved {record.type.value} record {record.name}")
    
    except Exception as e:
        logger.error(f"❌ Failed to save record: {str(e)}")
        sys.exit(1)


def cmd_records_delete(args):
    """Delete a record"""
    try:
        _service(args).client.delete_record(args.domain, args.record_id)
        logger.info(f"✅ Deleted record {args.record_id} from {args.domain}")
    
    except Exception as e:
        logger.error(f"❌ Failed to delete record: {str(e)}")
        sys.exit(1)


def cmd_records_export(args):
    """Export a zone as BIND zone-file text"""
    try:
        text = _service(args).export_zone(args.domain)
        if args.output:
            Path(args.output).write_text(text, encoding="utf-8")
            logger.info(f"✅ Zone written to {args.output}")
        else:
            print(text, end="")
    
    except Exception as e:
        logger.error(f"❌ Failed to export zone: {str(e)}")
        sys.exit(1)


def cmd_record_types(args):
    """Describe the supported record types"""
    print(f"\n{'='*60}")
    print(" RECORD TYPES")
    print(f"{'='*60}")
    for t in RecordType:
        print(f"  {t.value:<6} {t.long_name:<38} TTL {t.default_ttl:>6}  {t.rfc}")
        print(f"         e.g. {t.example_value}")
    print(f"{'='*60}\n")


def _add_record_fields(parser: argparse.ArgumentParser, with_id: bool = False):
    parser.add_argument("domain", help="Zone name")
    if with_id:
        parser.add_argument("--id", help="Record ID (omit for Google/Route53)")
    parser.add_argument("--name", required=True, help="Record name ('@' for the apex)")
    parser.add_argument("--type", required=True, type=str.upper, help="Record type (A, MX, TXT, ...)")
    parser.add_argument("--value", required=True, help="Record value")
    parser.add_argument("--ttl", type=int, help="TTL in seconds (default depends on type)")
    parser.add_argument("--priority", type=int, help="Priority (MX, SRV)")
    parser.add_argument("--weight", type=int, help="Weight (SRV)")
    parser.add_argument("--port", type=int, help="Port (SRV)")
    parser.add_argument("--flags", type=int, help="Flags (CAA)")
    parser.add_argument("--tag", help="Tag (CAA, e.g. issue)")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        description="Multi-provider DNS Zone & Record Management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List zones with the configured provider
  python main.py zones list
  
  # Show a zone on Cloudflare
  python main.py --provider cloudflare zones get example.com
  
  # Add an MX record
  python main.py records create example.com --name @ --type MX --value mail.example.com --priority 10
  
  # Delete a Route53 record by name and type
  python main.py --provider route53 records delete example.com TXT/_acme-challenge
  
  # Export a zone file
  python main.py records export example.com --output example.com.zone
        """
    )
    parser.add_argument("--provider", type=str.upper, choices=PROVIDER_NAMES,
                        help="DNS provider (default: DNS_PROVIDER from config)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Logging level (default: INFO)")
    parser.add_argument("--log-file", help="Also log to logs/<file>")
    
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    
    # ==================== ZONES COMMAND ====================
    zones_parser = subparsers.add_parser("zones", help="Zone management")
    zones_subparsers = zones_parser.add_subparsers(dest="zones_command", help="Zone operations")
    
    zones_list = zones_subparsers.add_parser("list", help="List zones")
    zones_list.set_defaults(func=cmd_zones_list)
    
    zones_get = zones_subparsers.add_parser("get", help="Show zone details")
    zones_get.add_argument("domain", help="Zone name")
    zones_get.set_defaults(func=cmd_zones_get)
    
    zones_create = zones_subparsers.add_parser("create", help="Create a zone")
    zones_create.add_argument("domain", help="Zone name")
    zones_create.set_defaults(func=cmd_zones_create)
    
    zones_delete = zones_subparsers.add_parser("delete", help="Delete a zone and all its records")
    zones_delete.add_argument("domain", help="Zone name")
    zones_delete.add_argument("--yes", action="store_true", help="Confirm deletion")
    zones_delete.set_defaults(func=cmd_zones_delete)
    
    # ==================== RECORDS COMMAND ====================
    records_parser = subparsers.add_parser("records", help="Record management")
    records_subparsers = records_parser.add_subparsers(dest="records_command", help="Record operations")
    
    records_list = records_subparsers.add_parser("list", help="List records")
    records_list.add_argument("domain", help="Zone name")
    records_list.add_argument("--type", type=str.upper, help="Only this record type")
    records_list.add_argument("--name", help="Only records with this name")
    records_list.set_defaults(func=cmd_records_list)
    
    records_get = records_subparsers.add_parser("get", help="Show one record")
    records_get.add_argument("domain", help="Zone name")
    records_get.add_argument("record_id", help="Record ID, or TYPE/name for Azure/Google/Route53")
    records_get.set_defaults(func=cmd_records_get)
    
    records_create = records_subparsers.add_parser("create", help="Create a record")
    _add_record_fields(records_create)
    records_create.set_defaults(func=cmd_records_create)
    
    records_update = records_subparsers.add_parser("update", help="Update a record")
    _add_record_fields(records_update, with_id=True)
    records_update.set_defaults(func=cmd_records_update)
    
    records_upsert = records_subparsers.add_parser("upsert", help="Create or update by name and type")
    _add_record_fields(records_upsert)
    records_upsert.set_defaults(func=cmd_records_upsert)
    
    records_delete = records_subparsers.add_parser("delete", help="Delete a record")
    records_delete.add_argument("domain", help="Zone name")
    records_delete.add_argument("record_id", help="Record ID, or TYPE/name for Azure/Google/Route53")
    records_delete.set_defaults(func=cmd_records_delete)
    
    records_export = records_subparsers.add_parser("export", help="Export records as a BIND zone file")
    records_export.add_argument("domain", help="Zone name")
    records_export.add_argument("--output", help="Write to this file instead of stdout")
    records_export.set_defaults(func=cmd_records_export)
    
    # ==================== RECORD TYPES ====================
    types_parser = subparsers.add_parser("record-types", help="Describe supported record types")
    types_parser.set_defaults(func=cmd_record_types)
    
    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    set_level(args.log_level, log_file=args.log_file)
    
    if not args.command:
        parser.print_help()
        sys.exit(0)
    
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
