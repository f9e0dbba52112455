from datetime import date
from decimal import Decimal

import pytest

from models.import_record import CONFIDENCE_LOW, ImportRecord, SOURCE_BEST_EFFORT
from models.recurring_obligation import RecurringObligation
from services.import_service import build_import_template, normalize_frequency
from utils.delimited import EmptyFileError, MissingHeaderError, NoRecognizableDataError

USER = "user-1"
REF_DATE = date(2024, 3, 10)

CSV = (
    "Company,Amount,Frequency,Category,Date\n"
    "Netflix,£12.99,Monthly,Entertainment,15\n"
    "British Gas,85.50,monthly,Gas & Utilities,1\n"
    "Gym,£abc,Monthly,Health,5\n"
    "Rent,£850.00,Monthly,Rent,31\n"
)


def test_parse_file_builds_drafts(services, debit_card):
    result = services.imports.parse_file("debits.csv", CSV.encode("utf-8"), USER, debit_card.id, REF_DATE)
    assert result.success
    assert result.skipped == 1
    assert [d.name for d in result.drafts] == ["Netflix", "British Gas", "Rent"]

    gas = result.drafts[1]
    assert gas.id is None
    assert gas.amount == Decimal("85.50")
    assert gas.frequency == "Monthly"
    assert gas.category == "Utilities"
    assert gas.next_occurrence == "2024-04-01"

    rent = result.drafts[2]
    assert rent.category == "Mortgage/Rent"
    assert rent.next_occurrence == "2024-03-31"


def test_parse_file_returns_missing_header_error(services, debit_card):
    text = "Company,Amt,Freq,Cat,Date\nNetflix,£12.99,Monthly,Entertainment,15\n"
    result = services.imports.parse_file("debits.csv", text, USER, debit_card.id, REF_DATE)
    assert not result.success
    assert isinstance(result.error, MissingHeaderError)
    assert "amount, frequency, category" in result.message


def test_parse_file_returns_empty_file_error(services, debit_card):
    result = services.imports.parse_file("debits.csv", "# nothing\n", USER, debit_card.id, REF_DATE)
    assert isinstance(result.error, EmptyFileError)


def test_parse_file_with_no_usable_rows(services, debit_card):
    text = "Company,Amount,Frequency,Category,Date\nGym,free,Monthly,Health,5\n"
    result = services.imports.parse_file("debits.csv", text, USER, debit_card.id, REF_DATE)
    assert not result.success
    assert isinstance(result.error, NoRecognizableDataError)
    assert result.skipped == 1


def test_numbers_file_goes_through_best_effort(services, debit_card):
    raw = b"\x00\x14bplist\x00Netflix\x00\xc2\xa312.99\x00Monthly\x00Entertainment\x00"
    result = services.imports.parse_file("Budget.numbers", raw, USER, debit_card.id, REF_DATE)
    assert result.success
    assert result.source == SOURCE_BEST_EFFORT
    assert result.low_confidence
    draft = result.drafts[0]
    assert (draft.name, draft.amount, draft.category) == ("Netflix", Decimal("12.99"), "Entertainment")
    assert draft.anchor_day == 10
    assert draft.next_occurrence == "2024-04-10"


def test_numbers_file_without_known_names(services, debit_card):
    result = services.imports.parse_file("Budget.numbers", b"\x00\x01 hello", USER, debit_card.id, REF_DATE)
    assert not result.success
    assert isinstance(result.error, NoRecognizableDataError)


@pytest.mark.parametrize(
    "frequency, day",
    [
        ("Fortnightly", "5"),
        ("Monthly", "45"),
        ("Monthly", "0"),
        ("Monthly", "15th"),
        ("Monthly", None),
        (None, "5"),
    ],
)
def test_to_draft_rejects_unreadable_frequency_or_day(services, debit_card, frequency, day):
    record = ImportRecord(company="Gym", amount="£30.00", frequency=frequency, category="Health", date=day)
    assert services.imports.to_draft(record, USER, debit_card.id, REF_DATE) is None


def test_rows_with_bad_frequency_or_day_are_skipped(services, debit_card):
    text = (
        "Company,Amount,Frequency,Category,Date\n"
        "Netflix,£12.99,Monthly,Entertainment,15\n"
        "Gym,£30.00,Fortnightly,Health,5\n"
        "Oxfam,£15,Yearly,Charity,45\n"
    )
    result = services.imports.parse_text(text, USER, debit_card.id, REF_DATE)
    assert [d.name for d in result.drafts] == ["Netflix"]
    assert result.skipped == 2


def test_best_effort_record_is_anchored_on_reference_day(services, debit_card):
    record = ImportRecord(company="Oxfam", amount="£15", frequency="yearly", category="charity",
                          source=SOURCE_BEST_EFFORT, confidence=CONFIDENCE_LOW)
    draft = services.imports.to_draft(record, USER, debit_card.id, REF_DATE)
    assert draft.anchor_day == 10
    assert draft.next_occurrence == "2024-04-10"
    assert draft.frequency == "Yearly"
    assert draft.category == "Charity"


def test_normalize_frequency():
    assert normalize_frequency("QUARTERLY") == "Quarterly"
    assert normalize_frequency(" weekly ") == "Weekly"
    assert normalize_frequency("fortnightly") is None
    assert normalize_frequency(None) is None


def test_import_non_duplicates_skips_existing(services, debit_card):
    services.recurring.create(USER, debit_card.id, "Netflix", "£12.99", "Monthly", "Entertainment", 15)
    drafts = services.imports.parse_text(CSV, USER, debit_card.id, REF_DATE).drafts

    report = services.imports.check_duplicates(USER, drafts)
    assert [d.name for d in report.duplicates] == ["Netflix"]

    batch = services.imports.import_non_duplicates(USER, drafts)
    assert batch.imported == 2
    assert batch.failed == 0
    names = sorted(d.name for d in services.recurring.get_all(USER))
    assert names == ["British Gas", "Netflix", "Rent"]


def test_import_all_keeps_duplicates(services, debit_card):
    services.recurring.create(USER, debit_card.id, "Netflix", "£12.99", "Monthly", "Entertainment", 15)
    drafts = services.imports.parse_text(CSV, USER, debit_card.id, REF_DATE).drafts
    batch = services.imports.import_all(drafts)
    assert batch.imported == 3
    assert len(services.recurring.get_all(USER)) == 4


def test_batch_import_survives_individual_failures(services, debit_card):
    good = services.imports.parse_text(CSV, USER, debit_card.id, REF_DATE).drafts
    orphan = RecurringObligation(
        id=None, user_id=USER, name="Orphan", amount=Decimal("5"), frequency="Monthly",
        category="Other", anchor_day=1, next_occurrence="2024-04-01", card_id=9999,
    )
    batch = services.imports.import_all([good[0], orphan, good[1]])
    assert batch.imported == 2
    assert batch.failed == 1
    assert batch.failures == ["Orphan"]
    assert batch.success
    assert [d.name for d in batch.created] == ["Netflix", "British Gas"]


def test_template_round_trips_through_parser(services, debit_card):
    template = build_import_template()
    result = services.imports.parse_text(template, USER, debit_card.id, REF_DATE)
    assert result.success
    assert len(result.drafts) == 15
    assert result.skipped == 0


def test_template_can_be_limited_to_categories():
    template = build_import_template(["Entertainment"])
    data_rows = [line for line in template.splitlines()[1:] if "£" in line and "," in line]
    assert [row.split(",")[0] for row in data_rows] == ["Netflix", "Spotify"]
