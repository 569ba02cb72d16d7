"""Load ``config.json`` with defaults and a few environment overrides."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("taskroom.config")

CONFIG_FILE = "config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "debug": False,
    "clean_logs": True,
    "task_data_dir": "data/tasks",
    "announce_webhook_url": None,
    "default_webhook_url": None,
    "room_webhooks": {},
    "team_role_id": None,
    "webhook_timeout": 10,
    "secret_min": 1,
    "secret_max": 100,
    "list_chunk_size": 1800,
    "flask_host": "0.0.0.0",
    "flask_port": 5000,
}

ENV_OVERRIDES = {
    "TASKROOM_ANNOUNCE_WEBHOOK": "announce_webhook_url",
    "TASKROOM_TEAM_ROLE_ID": "team_role_id",
    "TASKROOM_PORT": "flask_port",
}


def safe_load_json(path: str, default_value: Any) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning("%s not found. Using defaults.", path)
    except (OSError, ValueError) as e:
        logger.warning("Could not load %s: %s", path, e)
    return default_value


def _as_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    path = path or env.get("TASKROOM_CONFIG") or CONFIG_FILE
    raw = safe_load_json(path, {})
    if not isinstance(raw, dict):
        logger.warning("%s does not hold a JSON object. Using defaults.", path)
        raw = {}

    config = dict(DEFAULT_CONFIG)
    config.update({key: value for key, value in raw.items() if value is not None})
    for env_key, config_key in ENV_OVERRIDES.items():
        if env.get(env_key):
            config[config_key] = env[env_key]

    config["debug"] = bool(config.get("debug"))
    config["clean_logs"] = bool(config.get("clean_logs", True))
    config["secret_min"] = _as_int(config.get("secret_min"), 1)
    config["secret_max"] = _as_int(config.get("secret_max"), 100)
    if config["secret_min"] > config["secret_max"]:
        logger.warning("secret_min > secret_max; falling back to 1-100")
        config["secret_min"], config["secret_max"] = 1, 100
    config["flask_port"] = _as_int(config.get("flask_port"), 5000)
    config["list_chunk_size"] = max(200, _as_int(config.get("list_chunk_size"), 1800))
    config["webhook_timeout"] = max(1, _as_int(config.get("webhook_timeout"), 10))
    if not isinstance(config.get("room_webhooks"), dict):
        config["room_webhooks"] = {}
    return config
