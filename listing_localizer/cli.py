"""CLI tool for the listing localizer.

Usage:
    python -m listing_localizer.cli marketplaces
    python -m listing_localizer.cli detect --file listings.csv [--json]
    python -m listing_localizer.cli localize --file listings.tsv --marketplace amazon_de \
        --lang German [--format amazon] [--mappings mappings.json] [--remember] [-o out.tsv]
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from listing_localizer.config import config
from listing_localizer.errors import LocalizerError
from listing_localizer.export import FORMATS, export_request_for, export_results
from listing_localizer.logging_config import setup_logging
from listing_localizer.marketplaces import get_marketplace, list_marketplaces
from listing_localizer.models import ColumnMapping

logger = logging.getLogger(__name__)


def cmd_marketplaces(args):
    """List available marketplaces."""
    print("Available marketplaces:")
    print(list_marketplaces())


def cmd_detect(args):
    """Parse a file and show the suggested column mappings."""
    from listing_localizer.ingestion import parse_file

    parsed = parse_file(Path(args.file).read_bytes(), args.file)
    mappings = parsed.suggested_mappings
    restored = False
    if args.remember:
        saved = _mapping_store().load(parsed.headers)
        if saved:
            mappings, restored = saved, True

    if args.json:
        print(json.dumps([m.to_dict() for m in mappings], ensure_ascii=False, indent=2))
        return

    print(parsed.summary())
    if restored:
        print("Restored saved mapping")
    for m in mappings:
        print(f"  {m.source_column:<30} -> {m.target_field}")


def cmd_localize(args):
    """Localize a file and write the export."""
    from listing_localizer.pipeline import localize

    profile = get_marketplace(args.marketplace)
    if profile is None:
        print(f"Unknown marketplace: {args.marketplace}")
        print(list_marketplaces())
        sys.exit(1)

    config.validate()

    data = Path(args.file).read_bytes()
    mappings = _load_mappings(args.mappings) if args.mappings else None
    store = _mapping_store() if args.remember else None
    if store is not None and mappings is None:
        from listing_localizer.ingestion import parse_file
        mappings = store.load(parse_file(data, args.file).headers)
        if mappings:
            print("Using saved column mapping")

    def on_progress(done, total):
        print(f"  [{done}/{total}] listings localized")

    job = localize(
        profile.id,
        args.lang,
        file_bytes=data,
        filename=args.file,
        mappings=mappings,
        batch_size=args.batch_size,
        model=args.model,
        on_progress=on_progress,
    )
    if store is not None:
        store.save(list(job.source_rows[0].keys()), job.mappings)

    print()
    print(job.quality.summary())

    request = export_request_for(
        args.format,
        job.target_language,
        marketplace=job.marketplace,
        original_rows=job.source_rows,
        source_headers=job.source_headers,
    )
    payload = export_results(job.results, request)
    output = Path(args.output or payload.filename)
    output.write_bytes(payload.as_bytes())
    print(f"Saved to {output}")


def _load_mappings(path: str) -> list[ColumnMapping]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return [ColumnMapping.from_dict(item) for item in data]


def _mapping_store():
    from listing_localizer.mapping_store import MappingStore
    return MappingStore(config.REDIS_URL)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="listing-localizer",
        description="Localize product listing files for international marketplaces",
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Console log level")
    parser.add_argument("--log-file", help="Also write a detailed log to this file")
    sub = parser.add_subparsers(dest="command", help="Command")

    # marketplaces
    sub.add_parser("marketplaces", help="List available marketplaces")

    # detect
    p = sub.add_parser("detect", help="Show suggested column mappings for a file")
    p.add_argument("--file", "-f", required=True, help="Input CSV/TSV/XLSX/XLS file")
    p.add_argument("--json", action="store_true", help="Print mappings as JSON")
    p.add_argument("--remember", action="store_true", help="Prefer a saved mapping")

    # localize
    p = sub.add_parser("localize", help="Localize listings and export")
    p.add_argument("--file", "-f", required=True, help="Input CSV/TSV/XLSX/XLS file")
    p.add_argument("--marketplace", "-m", required=True, help="Marketplace id")
    p.add_argument("--lang", "-l", required=True, help="Target language")
    p.add_argument("--format", default="csv", choices=FORMATS, help="Export format")
    p.add_argument("--mappings", help="JSON file of confirmed column mappings")
    p.add_argument("--remember", action="store_true",
                   help="Reuse and save the column mapping for this header set")
    p.add_argument("--batch-size", type=int, default=None, help="Concurrent calls per batch")
    p.add_argument("--model", default=None, help="Model override")
    p.add_argument("--output", "-o", help="Output file")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_file)

    commands = {
        "marketplaces": cmd_marketplaces,
        "detect": cmd_detect,
        "localize": cmd_localize,
    }
    try:
        commands[args.command](args)
    except (LocalizerError, ValueError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
