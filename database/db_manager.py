import logging
import os
import sqlite3
from typing import Callable

from utils.constants import DB_FILE, CURRENCY_SYMBOL

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        self._listeners: dict[str, list[Listener]] = {}

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._migrate_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _migrate_schema(self, conn: sqlite3.Connection):
        """Idempotent ALTER TABLE for columns added after initial release."""
        cols = {row[1] for row in conn.execute("PRAGMA table_info(direct_debits)").fetchall()}
        if "linked_card_id" not in cols:
            conn.execute(
                "ALTER TABLE direct_debits ADD COLUMN linked_card_id INTEGER "
                "REFERENCES cards(id) ON DELETE SET NULL"
            )
        if "last_payment_date" not in cols:
            conn.execute("ALTER TABLE direct_debits ADD COLUMN last_payment_date TEXT")

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS cards (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id      TEXT    NOT NULL,
                name         TEXT    NOT NULL,
                card_type    TEXT    NOT NULL DEFAULT 'debit' CHECK(card_type IN ('debit','credit')),
                credit_limit TEXT    NOT NULL DEFAULT '0',
                created_at   TEXT    NOT NULL DEFAULT (datetime('now')),
                UNIQUE(user_id, name)
            );

            CREATE TABLE IF NOT EXISTS direct_debits (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id           TEXT    NOT NULL,
                card_id           INTEGER NOT NULL REFERENCES cards(id) ON DELETE CASCADE,
                linked_card_id    INTEGER REFERENCES cards(id) ON DELETE SET NULL,
                name              TEXT    NOT NULL,
                description       TEXT    NOT NULL DEFAULT '',
                amount            TEXT    NOT NULL,
                frequency         TEXT    NOT NULL CHECK(frequency IN ('Weekly','Monthly','Quarterly','Yearly')),
                category          TEXT    NOT NULL DEFAULT 'Other',
                anchor_day        INTEGER NOT NULL CHECK(anchor_day BETWEEN 1 AND 31),
                next_occurrence   TEXT    NOT NULL,
                status            TEXT    NOT NULL DEFAULT 'Active' CHECK(status IN ('Active','Paused','Cancelled')),
                last_payment_date TEXT,
                created_at        TEXT    NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id         TEXT    NOT NULL,
                card_id         INTEGER NOT NULL REFERENCES cards(id) ON DELETE CASCADE,
                amount          TEXT    NOT NULL,
                category        TEXT    NOT NULL DEFAULT 'Other',
                description     TEXT    NOT NULL DEFAULT '',
                date            TEXT    NOT NULL,
                direct_debit_id INTEGER REFERENCES direct_debits(id) ON DELETE SET NULL,
                created_at      TEXT    NOT NULL DEFAULT (datetime('now')),
                updated_at      TEXT    NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_direct_debits_user     ON direct_debits(user_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_user      ON transactions(user_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_card_date ON transactions(card_id, date);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("currency_symbol", CURRENCY_SYMBOL),
            ("date_format", "DD/MM/YYYY"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    # ── Change notifications ─────────────────────────────────────────────────

    def add_listener(self, table: str, listener: Listener) -> Callable[[], None]:
        """Call `listener` after every committed change to `table`.

        Returns a function that removes the listener; calling it twice is a no-op.
        """
        self._listeners.setdefault(table, []).append(listener)

        def remove():
            listeners = self._listeners.get(table, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def notify(self, table: str):
        for listener in list(self._listeners.get(table, [])):
            try:
                listener()
            except Exception:
                # The write is already committed; keep notifying the rest.
                logger.exception("Listener for %s failed", table)

    @staticmethod
    def open_in_folder(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (and initializes) the DB in db_folder or the CWD."""
        path = os.path.join(db_folder, DB_FILE) if db_folder else DB_FILE
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
        db = DatabaseManager(path)
        db.initialize()
        logger.info("Opened database %s", path)
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
