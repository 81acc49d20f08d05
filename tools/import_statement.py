"""Parse a pasted bank statement saved as a text file.

Prints a summary, optionally writes CSV/XLSX exports and a failed-line
report, and optionally saves the batch to Supabase.

Engine options (CRDB date separator, dedup keys, chunk sizes, failed-line
storage) come from the same environment / ``.env`` settings the API reads;
command line flags override them.

    python tools/import_statement.py statement.txt --bank CRDB --csv out.csv
    python tools/import_statement.py statement.txt --bank NMB --save --session-id <uuid>
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from apps.api.core.config import get_settings
from apps.api.domains.statements.service import EngineOptions
from packages.statement_engine.aggregator import summarize
from packages.statement_engine.directory import parse_mapping_sheet
from packages.statement_engine.export import (
    failed_records_report,
    to_csv_bytes,
    to_excel_bytes,
)
from packages.statement_engine.identity import apply_mappings
from packages.statement_engine.models import BankFormat
from packages.statement_engine.parser import parse_transactions
from packages.statement_engine.pipeline import save_statement
from packages.statement_engine.store import KEY_COLUMNS, RecordStore, StoreError


def get_env_value(*names: str) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parse and import a bank statement")
    parser.add_argument("file", help="Text file with one statement line per row")
    parser.add_argument("--bank", required=True, choices=[f.value for f in BankFormat])
    parser.add_argument("--mappings", help="Customer sheet (CSV or tab-separated) to apply")
    parser.add_argument("--crdb-date-separator", choices=["-", "/"])
    parser.add_argument("--csv", help="Write successful records to this CSV file")
    parser.add_argument("--xlsx", help="Write successful records to this XLSX file")
    parser.add_argument("--failed-report", help="Write failed lines to this text file")
    parser.add_argument("--save", action="store_true", help="Save the batch to Supabase")
    parser.add_argument("--session-id", help="Owner of the saved batch (Supabase user id)")
    parser.add_argument("--batch-name", help="Display name of the saved batch")
    parser.add_argument(
        "--persist-failed-lines", action="store_true", help="Also store failed lines"
    )
    parser.add_argument(
        "--dedup-key", choices=sorted(KEY_COLUMNS), help="Dedup key for this bank format"
    )
    parser.add_argument("--dedup-chunk-size", type=int, help="Keys per existence query")
    parser.add_argument("--write-chunk-size", type=int, help="Rows per insert call")
    return parser


def load_engine_options(args) -> EngineOptions:
    """Settings from the environment, then command line overrides."""
    try:
        cfg = get_settings()
    except ValidationError:
        # SUPABASE_URL / SUPABASE_ANON_KEY unset: engine defaults
        cfg = None
    options = EngineOptions.from_settings(cfg)

    if args.crdb_date_separator:
        options.crdb_date_separator = args.crdb_date_separator
    if args.dedup_key:
        options.dedup_keys[BankFormat.parse(args.bank)] = args.dedup_key
    if args.dedup_chunk_size:
        options.dedup_chunk_size = args.dedup_chunk_size
    if args.write_chunk_size:
        options.write_chunk_size = args.write_chunk_size
    if args.persist_failed_lines:
        options.persist_failed_lines = True
    return options


def build_store() -> RecordStore | None:
    from supabase import create_client

    from apps.api.domains.batches.repository import SupabaseRecordStore

    url = get_env_value("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    key = get_env_value("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY")
    if not url or not key:
        print("❌ Missing Supabase env vars. Set SUPABASE_URL and SUPABASE_SERVICE_KEY.")
        return None
    return SupabaseRecordStore(create_client(url, key))


def save_to_supabase(result, mappings, args, options: EngineOptions) -> int:
    store = build_store()
    if store is None:
        return 1

    try:
        outcome = asyncio.run(
            save_statement(
                result,
                store,
                args.session_id,
                mappings=mappings,
                batch_name=args.batch_name,
                dedup_keys=options.dedup_keys,
                dedup_chunk_size=options.dedup_chunk_size,
                write_chunk_size=options.write_chunk_size,
                persist_failed_lines=options.persist_failed_lines,
            )
        )
    except StoreError as e:
        print(f"❌ Save failed, nothing was written: {e}")
        return 1

    if outcome.batch_id is None:
        print(f"⚠️ Nothing new to save ({outcome.duplicates_skipped} duplicates skipped).")
        return 0

    print(
        f"🚀 Saved batch {outcome.batch_id}: {outcome.inserted_count} rows, "
        f"{outcome.duplicates_skipped} duplicates skipped (key: {outcome.dedup_key})"
    )
    if outcome.partial:
        print(f"⚠️ {outcome.failed_chunks} chunk(s) failed to write; the batch is partial.")
    return 0


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    path = Path(args.file)
    if not path.exists():
        print(f"❌ File not found: {args.file}")
        return 1
    if args.save and not args.session_id:
        print("❌ --save needs --session-id")
        return 1

    options = load_engine_options(args)

    print(f"📂 Reading file: {path}")
    result = parse_transactions(
        path.read_text(encoding="utf-8"),
        args.bank,
        crdb_date_separator=options.crdb_date_separator,
    )

    mappings = []
    if args.mappings:
        mappings = parse_mapping_sheet(Path(args.mappings).read_text(encoding="utf-8"))
        print(f"   Loaded {len(mappings)} customer mappings")
    resolved = result.with_successful(apply_mappings(result.successful, mappings))

    totals = summarize(resolved)
    print(
        f"   {totals.total_lines} lines: {totals.success_count} parsed, "
        f"{totals.fail_count} failed ({totals.success_rate:.1f}%), "
        f"total {totals.total_amount:,.2f}"
    )

    if args.csv:
        Path(args.csv).write_bytes(to_csv_bytes(resolved.successful))
        print(f"   Wrote {args.csv}")
    if args.xlsx:
        Path(args.xlsx).write_bytes(to_excel_bytes(resolved.successful))
        print(f"   Wrote {args.xlsx}")
    if args.failed_report and resolved.failed:
        Path(args.failed_report).write_text(
            failed_records_report(resolved.failed), encoding="utf-8"
        )
        print(f"   Wrote {args.failed_report}")

    if args.save:
        return save_to_supabase(result, mappings, args, options)
    return 0


if __name__ == "__main__":
    sys.exit(main())
