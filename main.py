import argparse
import logging
import os
import sys
from dataclasses import dataclass

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.card_dao import CardDAO
from database.direct_debit_dao import DirectDebitDAO
from database.transaction_dao import TransactionDAO
from models.card import Card

from services.category_service import CategoryService
from services.import_service import ImportService, TEMPLATE_FILENAME, build_import_template
from services.processing_service import ProcessingService
from services.recurring_service import RecurringService
from services.reminder_service import ReminderService
from services.statement_service import StatementService, filter_transactions, statement_filename

from utils.app_config import get_db_folder, get_log_level, get_user_id
from utils.constants import APP_NAME, DATE_RANGE_DAYS, DEFAULT_CARD_NAME, TRANSACTION_CATEGORIES
from utils.currency import format_currency, format_signed
from utils.date_helpers import format_display_date


@dataclass
class Services:
    db: DatabaseManager
    card_dao: CardDAO
    tx_dao: TransactionDAO
    recurring: RecurringService
    imports: ImportService
    statements: StatementService
    processing: ProcessingService
    reminders: ReminderService
    categories: CategoryService


def build_services(db: DatabaseManager) -> Services:
    # ── DAOs ─────────────────────────────────────────────────────────────────
    card_dao = CardDAO(db)
    dd_dao = DirectDebitDAO(db)
    tx_dao = TransactionDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    recurring_svc = RecurringService(dd_dao, card_dao)
    processing_svc = ProcessingService(dd_dao, tx_dao, card_dao)
    return Services(
        db=db,
        card_dao=card_dao,
        tx_dao=tx_dao,
        recurring=recurring_svc,
        imports=ImportService(dd_dao),
        statements=StatementService(tx_dao, card_dao),
        processing=processing_svc,
        reminders=ReminderService(recurring_svc, processing_svc),
        categories=CategoryService(),
    )


def resolve_card(services: Services, user_id: str, name: str | None) -> Card:
    """Named card, or the user's first card (creating the default one if none exist)."""
    cards = services.card_dao.get_for_user(user_id)
    if name:
        for card in cards:
            if card.name.lower() == name.lower():
                return card
        raise SystemExit(f"No card named '{name}'.")
    if cards:
        return cards[0]
    return services.card_dao.create(user_id, DEFAULT_CARD_NAME)


def cmd_run(services: Services, user_id: str, args) -> int:
    result = services.processing.process_due(user_id)
    for outcome in result.processed:
        print(f"Paid {outcome.debit.name}: {format_currency(outcome.debit.amount)}")
    for outcome in result.failed:
        print(f"FAILED {outcome.debit.name}: {outcome.error}")
    for reminder in services.reminders.get_reminders(user_id):
        print(f"[{reminder.severity}] {reminder.title} ({reminder.detail})")
    return 1 if result.failed else 0


def cmd_import(services: Services, user_id: str, args) -> int:
    card = resolve_card(services, user_id, args.card)
    with open(args.path, "rb") as f:
        content = f.read()
    parsed = services.imports.parse_file(os.path.basename(args.path), content, user_id, card.id)
    if not parsed.success:
        print(parsed.message)
        return 1
    if parsed.low_confidence:
        print("Warning: these rows were guessed from an unsupported file; check them.")
    if args.include_duplicates:
        batch = services.imports.import_all(parsed.drafts)
    else:
        report = services.imports.check_duplicates(user_id, parsed.drafts)
        for debit in report.duplicates:
            print(f"Skipping duplicate: {debit.name} ({format_currency(debit.amount)})")
        batch = services.imports.import_non_duplicates(user_id, parsed.drafts)
    print(f"Imported: {batch.imported}  Failed: {batch.failed}  Skipped rows: {parsed.skipped}")
    return 0 if batch.success else 1


def cmd_debits(services: Services, user_id: str, args) -> int:
    card = resolve_card(services, user_id, args.card)
    date_fmt = services.db.get_setting("date_format", "DD/MM/YYYY")
    for d in services.recurring.get_for_card(user_id, card.id):
        print(f"{d.id:>4}  {d.name:<28} {format_currency(d.amount):>10}  {d.frequency:<9} "
              f"{d.status:<9} next {format_display_date(d.next_occurrence, date_fmt)}")
    total = services.recurring.monthly_total(user_id, card.id)
    print(f"Active total: {format_currency(total)}")
    return 0


def cmd_transactions(services: Services, user_id: str, args) -> int:
    card = resolve_card(services, user_id, args.card)
    rows = filter_transactions(
        services.tx_dao.get_by_card(user_id, card.id),
        search=args.search or "",
        category=args.category,
        date_range=args.range,
        custom_start=args.start,
        custom_end=args.end,
        categories=services.categories,
    )
    date_fmt = services.db.get_setting("date_format", "DD/MM/YYYY")
    for tx in rows:
        print(f"{format_display_date(tx.date, date_fmt)}  {tx.description or 'Transaction':<32} "
              f"{tx.category:<16} {format_signed(tx.amount):>11}")
    return 0


def cmd_statements(services: Services, user_id: str, args) -> int:
    card = resolve_card(services, user_id, args.card)
    date_fmt = services.db.get_setting("date_format", "DD/MM/YYYY")
    current = services.statements.get_current_period(user_id, card.id)
    print(f"{current.period} (current): spent {format_currency(current.total_outflow)}, "
          f"net {format_signed(current.net_change)}")
    for s in services.statements.get_statements(user_id, card.id):
        line = (f"{s.period}: {s.transaction_count} transactions, "
                f"spent {format_currency(s.total_outflow)}, "
                f"in {format_currency(s.total_inflow)}, net {format_signed(s.net_change)}")
        if s.minimum_payment is not None:
            line += (f", minimum {format_currency(s.minimum_payment)} "
                     f"due {format_display_date(s.due_date, date_fmt)}")
        print(line)
    return 0


def cmd_export(services: Services, user_id: str, args) -> int:
    card = resolve_card(services, user_id, args.card)
    try:
        content = services.statements.export_csv(user_id, card.id, args.period)
    except ValueError as e:
        print(e)
        return 1
    statement = next(
        s for s in services.statements.get_statements(user_id, card.id)
        if s.period_key == args.period
    )
    path = args.output or statement_filename(statement, card.name)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    print(f"Saved {path}")
    return 0


def cmd_template(services: Services, user_id: str, args) -> int:
    path = args.output or TEMPLATE_FILENAME
    with open(path, "w", encoding="utf-8", newline="") as f:
        categories = [services.categories.reconcile(c) for c in args.category or []]
        f.write(build_import_template(categories or None))
    print(f"Saved {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME.lower())
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="charge due direct debits and show reminders")

    p = sub.add_parser("import", help="import direct debits from a CSV or Numbers file")
    p.add_argument("path")
    p.add_argument("--card")
    p.add_argument("--include-duplicates", action="store_true")

    p = sub.add_parser("debits", help="list direct debits on a card")
    p.add_argument("--card")

    p = sub.add_parser("transactions", help="search a card's transactions")
    p.add_argument("--card")
    p.add_argument("--search")
    p.add_argument("--category", default="All", choices=["All"] + TRANSACTION_CATEGORIES)
    p.add_argument("--range", default="All", choices=["All", *DATE_RANGE_DAYS, "Custom"])
    p.add_argument("--start", help="YYYY-MM-DD, with --range Custom")
    p.add_argument("--end", help="YYYY-MM-DD, with --range Custom")

    p = sub.add_parser("statements", help="list monthly statements for a card")
    p.add_argument("--card")

    p = sub.add_parser("export", help="export one statement as CSV")
    p.add_argument("period", help="YYYY-MM")
    p.add_argument("--card")
    p.add_argument("-o", "--output")

    p = sub.add_parser("template", help="write the import template")
    p.add_argument("--category", action="append")
    p.add_argument("-o", "--output")
    return parser


COMMANDS = {
    "run": cmd_run,
    "import": cmd_import,
    "debits": cmd_debits,
    "transactions": cmd_transactions,
    "statements": cmd_statements,
    "export": cmd_export,
    "template": cmd_template,
}


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    # ── Bootstrap: read DB folder from pre-DB config ──────────────────────────
    db = DatabaseManager.open_in_folder(get_db_folder())
    try:
        services = build_services(db)
        handler = COMMANDS[args.command or "run"]
        return handler(services, get_user_id(), args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
