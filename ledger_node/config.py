# ledger_node/config.py
import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

log = logging.getLogger(__name__)

CONFIG_FILENAME = "ledger_config.yaml"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


class ConfigError(ValueError):
    """Config value the node cannot run with."""


# -------- Defaults --------
_DEFAULT: Dict[str, Any] = {
    "store": {
        "driver": "json",  # json | memory
        "path": "data/ledger_state.json",
        "keep_backups": 2,
    },
    "logging": {"level": "INFO"},
    "server": {
        "host": "127.0.0.1",  # uvicorn bind address
        "port": 8000,
    },
}

# -------- ENV overrides --------
_ENV_MAP = {
    ("store", "driver"): ("LEDGER_STORE_DRIVER", str),
    ("store", "path"): ("LEDGER_STORE_PATH", str),
    ("store", "keep_backups"): ("LEDGER_KEEP_BACKUPS", int),
    ("logging", "level"): ("LEDGER_LOG_LEVEL", str),
    ("server", "host"): ("LEDGER_HOST", str),
    ("server", "port"): ("LEDGER_PORT", int),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            log.warning("Ignoring %s=%r: expected %s", env_name, val, cast.__name__)
            continue
        cfg[section] = dict(cfg.get(section) or {})
        cfg[section][key] = casted
    return cfg


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads the YAML config from `path` (default: ./ledger_config.yaml).
    Returns defaults if the file doesn't exist or can't be parsed.
    ENV overrides are applied last.
    """
    path = path or os.path.join(os.getcwd(), CONFIG_FILENAME)
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
            else:
                log.warning("Config %s is not a mapping; using defaults", path)
        except (OSError, yaml.YAMLError) as e:
            log.warning("Failed to read config %s: %s; using defaults", path, e)

    return _apply_env_overrides(cfg)


def setup_logging(cfg: Dict[str, Any]) -> None:
    level = get_log_level(cfg)
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


# -------- Small helpers --------
def get_store_driver(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("store", {}).get("driver", "json")).lower()


def get_store_path(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("store", {}).get("path", "data/ledger_state.json"))


def get_keep_backups(cfg: Dict[str, Any]) -> int:
    raw = cfg.get("store", {}).get("keep_backups", 2)
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"store.keep_backups must be an integer, got {raw!r}") from e


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level", "INFO")).upper()


def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))
