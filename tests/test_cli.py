import pytest

import main as cli
from database.db_manager import DatabaseManager
from utils.constants import DEFAULT_CARD_NAME


@pytest.fixture()
def workspace(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "get_db_folder", lambda: str(tmp_path / "db"))
    monkeypatch.setattr(cli, "get_user_id", lambda: "cli-user")
    monkeypatch.setattr(cli, "get_log_level", lambda: 30)
    return tmp_path


def test_template_then_import(workspace, capsys):
    template = workspace / "template.csv"
    assert cli.main(["template", "--category", "Entertainment", "-o", str(template)]) == 0
    assert template.read_text(encoding="utf-8").startswith("Company,Amount,Frequency,Category,Date")

    assert cli.main(["import", str(template)]) == 0
    assert "Imported: 2" in capsys.readouterr().out

    assert cli.main(["import", str(template)]) == 0
    out = capsys.readouterr().out
    assert "Skipping duplicate: Netflix" in out
    assert "Imported: 0" in out

    db = DatabaseManager.open_in_folder(str(workspace / "db"))
    try:
        services = cli.build_services(db)
        cards = services.card_dao.get_for_user("cli-user")
        assert [c.name for c in cards] == [DEFAULT_CARD_NAME]
        assert len(services.recurring.get_all("cli-user")) == 2
    finally:
        db.close()


def test_import_reports_parse_errors(workspace, capsys):
    bad = workspace / "bad.csv"
    bad.write_text("Company,Amt\nNetflix,1\n", encoding="utf-8")
    assert cli.main(["import", str(bad)]) == 1
    assert "Missing required columns" in capsys.readouterr().out


def test_export_unknown_period(workspace, capsys):
    assert cli.main(["export", "2001-01"]) == 1


def test_unknown_card_exits(workspace):
    with pytest.raises(SystemExit):
        cli.main(["statements", "--card", "Nope"])


def test_template_category_is_reconciled(workspace):
    template = workspace / "template.csv"
    assert cli.main(["template", "--category", "entertain", "-o", str(template)]) == 0
    rows = template.read_text(encoding="utf-8").splitlines()
    assert rows[1].startswith("Netflix,") and rows[2].startswith("Spotify,")
    assert rows[3] == ""


def test_debits_and_transactions_listing(workspace, capsys):
    template = workspace / "template.csv"
    cli.main(["template", "--category", "Entertainment", "-o", str(template)])
    cli.main(["import", str(template)])
    capsys.readouterr()

    assert cli.main(["debits"]) == 0
    out = capsys.readouterr().out
    assert "Netflix" in out and "Spotify" in out
    assert "Active total: £22.98" in out

    assert cli.main(["transactions", "--search", "netflix", "--range", "7days"]) == 0
    assert capsys.readouterr().out == ""
