"""
CredVerify CLI
===============

Command-line interface for verifying credential files and managing
stored verification records.

Usage:
    python -m credverify verify cert.pdf --name "AWS Cloud Practitioner" \\
        --issuer "Amazon Web Services" --number AWS-123 --owner learner-42
    python -m credverify list --owner learner-42
    python -m credverify list --by-owner
    python -m credverify show cred-20250209-143022-a1b2c3d4
    python -m credverify delete cred-20250209-143022-a1b2c3d4 --owner learner-42
    python -m credverify check-integrity cred-20250209-143022-a1b2c3d4
    python -m credverify export-schemas --output-dir schemas
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from credverify.config import get_config
from credverify.utils import setup_logging

STATUS_ICONS = {"verified": "✅", "pending": "⏳", "rejected": "❌"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credverify",
        description="CredVerify: automated credential verification",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config YAML")
    parser.add_argument("--verbose", "-v", action="store_true")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ── verify ──────────────────────────────────────────────────
    verify_parser = subparsers.add_parser("verify", help="Upload and verify a credential file")
    verify_parser.add_argument("file", help="Certificate file (PDF, image, or .txt)")
    verify_parser.add_argument("--name", required=True, help="Certificate name")
    verify_parser.add_argument("--issuer", required=True, help="Issuing organisation")
    verify_parser.add_argument("--number", required=True, help="Certificate number")
    verify_parser.add_argument("--url", default=None, help="Verification URL")
    verify_parser.add_argument("--level", default=None, help="Declared NSQF level")
    verify_parser.add_argument("--skills", default=None, help="Comma-separated or JSON list of skills")
    verify_parser.add_argument("--owner", default=None, help="Owning learner id")
    verify_parser.add_argument("--output", type=str, default=None, help="Output JSON path")

    # ── list ────────────────────────────────────────────────────
    list_parser = subparsers.add_parser("list", help="List stored credentials")
    list_group = list_parser.add_mutually_exclusive_group()
    list_group.add_argument("--owner", default=None, help="Only this owner's credentials")
    list_group.add_argument("--by-owner", action="store_true", help="Group owned credentials by owner")

    # ── show ────────────────────────────────────────────────────
    show_parser = subparsers.add_parser("show", help="Print a stored record as JSON")
    show_parser.add_argument("record_id")

    # ── delete ──────────────────────────────────────────────────
    delete_parser = subparsers.add_parser("delete", help="Delete an owned credential")
    delete_parser.add_argument("record_id")
    delete_parser.add_argument("--owner", required=True, help="Owning learner id")

    # ── check-integrity ─────────────────────────────────────────
    integrity_parser = subparsers.add_parser("check-integrity", help="Verify a record's integrity hash")
    integrity_parser.add_argument("record_id")

    # ── export-schemas ──────────────────────────────────────────
    schema_parser = subparsers.add_parser("export-schemas", help="Export JSON schemas")
    schema_parser.add_argument("--output-dir", default="schemas")

    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config(args.config)
    setup_logging(
        level="DEBUG" if args.verbose else config.log_level,
        format_style=config.log_format,
    )

    commands = {
        "verify": cmd_verify,
        "list": cmd_list,
        "show": cmd_show,
        "delete": cmd_delete,
        "check-integrity": cmd_check_integrity,
        "export-schemas": cmd_export_schemas,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args, config)


def cmd_verify(args, config):
    """Store a file, run the pipeline, print the outcome."""
    from pydantic import ValidationError

    from credverify.errors import CredVerifyError
    from credverify.pipeline import CredentialPipeline

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: {path} not found")
        sys.exit(1)

    config.ensure_dirs()
    pipeline = CredentialPipeline(config)
    try:
        record = asyncio.run(pipeline.verify_upload(
            path.read_bytes(),
            path.name,
            certificate_name=args.name,
            issuer=args.issuer,
            certificate_number=args.number,
            certificate_url=args.url,
            nsqf_level=args.level,
            skills=args.skills,
            owner_id=args.owner,
        ))
    except (CredVerifyError, ValidationError) as e:
        print(f"Error: {e}")
        sys.exit(2)

    icon = STATUS_ICONS.get(record.status.value, "?")
    print(f"\n  {icon} {record.status.value.upper()}  {record.certificate_name}")
    print(f"  Record: {record.record_id}")
    print(f"  Skills: {', '.join(record.skills) or '-'} (NSQF level {record.nsqf_level})")
    print(f"  Fingerprint: {record.fingerprint or '-'}")
    print(f"  Anchor: {record.anchor_receipt.state.value} {record.anchor_receipt.tx_ref or ''}")
    print(f"\n  Note: {record.verification_note}")

    if args.output:
        pipeline.builder.export_json(record, args.output)
        print(f"\n  Record saved to {args.output}")


def cmd_list(args, config):
    """List stored credentials, optionally for one owner or grouped by owner."""
    from credverify.store.repository import CredentialStore

    store = CredentialStore(config.storage.records_path)
    if args.by_owner:
        grouped = store.group_by_owner()
        if not grouped:
            print("No credentials stored.")
            return
        for owner_id, records in sorted(grouped.items()):
            print(f"{owner_id} ({len(records)})")
            for record in records:
                print(f"  {_format_record(record)}")
        return

    records = store.list_for_owner(args.owner) if args.owner else store.list_all()
    if not records:
        print("No credentials stored.")
        return
    for record in records:
        print(f"{_format_record(record)}  owner={record.owner_id or '-'}")


def _format_record(record) -> str:
    icon = STATUS_ICONS.get(record.status.value, "?")
    return (
        f"{icon} {record.record_id}  {record.status.value:<8}  "
        f"{record.certificate_name} ({record.issuer})"
    )


def cmd_show(args, config):
    """Print one stored record."""
    from credverify.store.repository import CredentialStore

    record = CredentialStore(config.storage.records_path).get(args.record_id)
    if record is None:
        print(f"Record not found: {args.record_id}")
        sys.exit(1)
    print(json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False))


def cmd_delete(args, config):
    """Delete an owned credential and its uploaded file."""
    from credverify.errors import CredentialNotFoundError
    from credverify.ingest.storage import FileStore
    from credverify.store.repository import CredentialStore

    store = CredentialStore(config.storage.records_path)
    file_store = FileStore(config.storage.upload_dir, max_bytes=config.storage.max_upload_bytes)
    try:
        store.delete(args.record_id, args.owner, file_store)
    except CredentialNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Deleted {args.record_id}")


def cmd_check_integrity(args, config):
    """Recompute a stored record's integrity hash."""
    from credverify.render.record import RecordBuilder
    from credverify.store.repository import CredentialStore

    record = CredentialStore(config.storage.records_path).get(args.record_id)
    if record is None:
        print(f"Record not found: {args.record_id}")
        sys.exit(1)

    result = RecordBuilder.check_integrity(record.model_dump(mode="json"))
    if result["valid"]:
        print("Integrity PASSED ✅")
    else:
        print(f"Integrity FAILED: {len(result['errors'])} errors")
        for err in result["errors"]:
            print(f"  - {err}")
        sys.exit(1)


def cmd_export_schemas(args, config):
    """Export JSON schemas for the pipeline's input and output contracts."""
    from credverify.schemas import (
        CorroborationJudgment,
        MatchJudgment,
        UploadRequest,
        VerificationRecord,
    )

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    schemas = {
        "upload_request": UploadRequest.model_json_schema(),
        "match_judgment": MatchJudgment.model_json_schema(),
        "corroboration_judgment": CorroborationJudgment.model_json_schema(),
        "verification_record": VerificationRecord.model_json_schema(),
    }
    for name, schema in schemas.items():
        path = output_dir / f"{name}.json"
        with open(path, "w") as f:
            json.dump(schema, f, indent=2)
        print(f"Exported: {path}")

    print(f"\n{len(schemas)} schemas exported to {output_dir}/")


if __name__ == "__main__":
    main()
