import json
import os
from pathlib import Path
from typing import Optional

CONFIG_DIR = Path.home() / ".config" / "mindweave"
CONFIG_FILE = CONFIG_DIR / "config.json"
ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"


def load_config() -> dict:
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r") as f:
            return json.load(f)
    except (OSError, ValueError):
        return {}


def save_config(key: str, value: str):
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config[key] = value
    with open(CONFIG_FILE, "w") as f:
        json.dump(config, f, indent=2)


def get_default_user() -> Optional[str]:
    return load_config().get("user_id")


def get_anthropic_api_key() -> Optional[str]:
    # Empty string counts as unset
    return os.environ.get(ANTHROPIC_API_KEY_ENV) or None
