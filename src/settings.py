"""Static configuration for newsgate.

Static settings (app name, clock offset, database path, default keywords,
logging) live in an optional config.json. Secrets and per-field defaults may
also come from the environment, loaded from .env via python-dotenv. Runtime
overrides in the state store take priority over everything here.
"""

import json
import os

from dotenv import load_dotenv

from core.config import DISCRETE_KEYS

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("NEWSGATE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json if present; the app runs on env vars alone otherwise."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _merge_defaults(file_defaults: dict) -> dict:
    """Env vars named like the discrete store keys override file defaults."""

    merged = dict(file_defaults)
    for field, env_name in DISCRETE_KEYS.items():
        value = os.getenv(env_name)
        if value:
            merged[field] = value
    return merged


_CONFIG = _load_json_config()

APP_NAME = os.getenv("APP_NAME") or _CONFIG.get("app_name", "newsgate")

# Local civil time used for slots and force hours (KST by default).
UTC_OFFSET_HOURS = float(os.getenv("UTC_OFFSET_HOURS") or _CONFIG.get("utc_offset_hours", 9))

# Where to store the SQLite state database.
DB_PATH = os.getenv("NEWSGATE_DB_PATH") or _CONFIG.get(
    "db_path", os.path.join(PROJECT_ROOT, "newsgate.db")
)
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)

# Lowest-priority source for the config resolver.
DEFAULTS = _merge_defaults(_CONFIG.get("defaults", {}))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
