import argparse
import logging
import sys
from pathlib import Path

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteAuditRepo, SQLiteContentStore
from src.api.deps import Settings
from src.components.audit import AuditQuery, DeletionAuditService, render_audit_csv
from src.components.content import ListQuery
from src.core.content_types import UnknownContentTypeError, get_content_type
from src.core.quantum_terms import is_quantum_term
from src.core.spelling import find_us_spellings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def handle_migrate(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(settings.db_path, str(settings.migrations_dir))
    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migrations.")
    for name in applied:
        print(f" - {name}")


def handle_export_audit(settings: Settings, args: argparse.Namespace) -> None:
    service = DeletionAuditService(SQLiteAuditRepo(settings.db_path))
    entries = service.query(AuditQuery(content_type=args.content_type, limit=None))
    csv_text = render_audit_csv(entries)

    output = Path(args.output)
    output.write_text(csv_text, encoding="utf-8")
    print(f"Exported {len(entries)} audit entries to {output}")


def handle_spelling_report(settings: Settings, args: argparse.Namespace) -> None:
    try:
        spec = get_content_type(args.type)
    except UnknownContentTypeError:
        logger.error(f"Unknown content type {args.type!r}.")
        sys.exit(1)

    store = SQLiteContentStore(settings.db_path)
    rows, _ = store.list(spec, ListQuery(deleted="exclude", order_by=spec.title_field))

    flagged = 0
    for row in rows:
        text = "\n".join(str(row.get(col) or "") for col in spec.search_columns)
        found = find_us_spellings(text, skip=is_quantum_term)
        if not found:
            continue
        flagged += 1
        print(f"{row['slug']}:")
        for match in found:
            print(
                f"  {match.us_spelling} -> {match.uk_spelling} "
                f"({match.category}, {len(match.matches)}x)"
            )

    print(f"{flagged} of {len(rows)} {spec.label.lower()} items use US spellings.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Quantum Knowledge Base CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # export-audit
    export_parser = subparsers.add_parser("export-audit", help="Write the audit log as CSV")
    export_parser.add_argument("--output", required=True, help="CSV file to write")
    export_parser.add_argument("--content-type", help="Only entries of this content type")

    # spelling-report
    spelling_parser = subparsers.add_parser(
        "spelling-report", help="List items that use US spellings"
    )
    spelling_parser.add_argument(
        "--type", required=True, help="Content type, e.g. case_studies or case-studies"
    )

    args = parser.parse_args()
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings)
    elif args.command == "export-audit":
        handle_export_audit(settings, args)
    elif args.command == "spelling-report":
        handle_spelling_report(settings, args)


if __name__ == "__main__":
    main()
