"""CLI configuration helpers for analyzer and simulator options."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Storyloom"
        return Path.home() / "Storyloom"
    return Path.home() / ".config" / "storyloom"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def default_config() -> Dict[str, object]:
    return {"ending_tags": [], "exhaustive_contradictions": False, "honor_edge_rules": False}


def _normalize_tags(value: object) -> List[str]:
    if not isinstance(value, list):
        return []
    tags: List[str] = []
    for tag in value:
        if isinstance(tag, str) and tag.strip() and tag.strip() not in tags:
            tags.append(tag.strip())
    return tags


def normalize_config(raw: Dict[str, object]) -> Dict[str, object]:
    """Coerce raw values into a config dict with every known key."""
    return {
        "ending_tags": _normalize_tags(raw.get("ending_tags")),
        "exhaustive_contradictions": raw.get("exhaustive_contradictions") is True,
        "honor_edge_rules": raw.get("honor_edge_rules") is True,
    }


def load_config(path: Path | None = None) -> Dict[str, object]:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return default_config()
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_path, exc)
        return default_config()
    if not isinstance(raw, dict):
        return default_config()
    return normalize_config(raw)


def save_config(config: Dict[str, object], path: Path | None = None) -> Path:
    """Persist config to disk and return the written path."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = normalize_config(config)
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    return config_path
