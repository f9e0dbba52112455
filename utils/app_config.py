"""Pre-DB bootstrap configuration. Zero imports from the rest of the app.

Stores preferences that must be known before opening the DB (db_folder,
user_id, log_level).  Config lives in ~/.spendflow/config.json to avoid a
bootstrapping problem.
"""
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".spendflow"
CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_USER_ID = "local"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file; never raises."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config file: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config directory if needed; atomic write via .tmp + os.replace()."""
    target = Path(path or CONFIG_FILE)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except OSError as exc:
        logger.warning("Could not save config file: %s", exc)
        tmp.unlink(missing_ok=True)


def get_db_folder(path: Path | None = None) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config(path).get("db_folder")


def set_db_folder(folder: str | None, path: Path | None = None) -> None:
    """Update db_folder in config and save."""
    config = load_config(path)
    if folder is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = folder
    save_config(config, path)


def get_log_level(path: Path | None = None) -> int:
    """Return the configured logging level, falling back to INFO for unknown names."""
    name = str(load_config(path).get("log_level", DEFAULT_LOG_LEVEL)).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_user_id(path: Path | None = None) -> str:
    """Owner of the records this install works on; 'local' unless configured."""
    return str(load_config(path).get("user_id") or DEFAULT_USER_ID)
