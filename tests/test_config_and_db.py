import logging

import pytest

from database.db_manager import DatabaseManager
from utils.app_config import (
    DEFAULT_USER_ID,
    get_db_folder,
    get_log_level,
    get_user_id,
    load_config,
    save_config,
    set_db_folder,
)


@pytest.fixture()
def config_path(tmp_path):
    return tmp_path / "nested" / "config.json"


def test_missing_config_is_empty(config_path):
    assert load_config(config_path) == {}
    assert get_db_folder(config_path) is None
    assert get_user_id(config_path) == DEFAULT_USER_ID
    assert get_log_level(config_path) == logging.INFO


def test_corrupt_config_is_ignored(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert load_config(path) == {}
    assert "unreadable config" in caplog.text


def test_non_object_config_is_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_config(path) == {}


def test_save_and_read_back(config_path):
    save_config({"user_id": "alice", "log_level": "debug"}, config_path)
    assert get_user_id(config_path) == "alice"
    assert get_log_level(config_path) == logging.DEBUG
    assert not config_path.with_suffix(".tmp").exists()

    set_db_folder("/data/spendflow", config_path)
    assert get_db_folder(config_path) == "/data/spendflow"
    assert get_user_id(config_path) == "alice"
    set_db_folder(None, config_path)
    assert get_db_folder(config_path) is None


def test_unknown_log_level_falls_back_to_info(config_path):
    save_config({"log_level": "chatty"}, config_path)
    assert get_log_level(config_path) == logging.INFO


def test_open_in_folder_creates_database(tmp_path):
    folder = tmp_path / "store"
    db = DatabaseManager.open_in_folder(str(folder))
    try:
        assert (folder / "spendflow.db").exists()
        assert db.get_setting("currency_symbol") == "£"
    finally:
        db.close()


def test_initialize_is_idempotent(db):
    db.initialize()
    cols = {row[1] for row in db.get_connection().execute("PRAGMA table_info(direct_debits)")}
    assert {"linked_card_id", "last_payment_date"} <= cols


def test_settings_round_trip(db):
    assert db.get_setting("missing", "fallback") == "fallback"
    db.set_setting("date_format", "YYYY-MM-DD")
    assert db.get_setting("date_format") == "YYYY-MM-DD"


def test_listener_can_be_removed(db):
    calls = []
    remove = db.add_listener("cards", lambda: calls.append("cards"))
    db.notify("cards")
    db.notify("transactions")
    remove()
    remove()
    db.notify("cards")
    assert calls == ["cards"]


def test_failing_listener_does_not_stop_others(db, caplog):
    calls = []

    def broken():
        raise RuntimeError("boom")

    db.add_listener("cards", broken)
    db.add_listener("cards", lambda: calls.append(1))
    with caplog.at_level(logging.ERROR):
        db.notify("cards")
    assert calls == [1]
    assert "Listener for cards failed" in caplog.text


def test_card_delete_cascades_to_debits(services, debit_card):
    services.recurring.create("user-1", debit_card.id, "Netflix", "£12.99", "Monthly", "Entertainment", 15)
    services.card_dao.delete(debit_card.id)
    assert services.recurring.get_all("user-1") == []
