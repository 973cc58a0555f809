"""App settings (API keys, generation backend, default style) in the key-value store."""

import json
from typing import Any

from storysmith.generation import DEFAULT_CHAT_MODEL, DEFAULT_IMAGE_MODEL
from storysmith.prompts import DEFAULT_VISUAL_STYLE

from .kv import KeyValueStore

CONFIG_KEY = "config"

# Keys the old client wrote its API keys under, mapped to api_keys entries.
_LEGACY_KEY_NAMES = {"openai_key": "openai", "google_key": "google"}

_CONFIG_DEFAULTS: dict[str, Any] = {
    "api_keys": {"openai": "", "google": ""},
    # Empty defers to OPENAI_BASE_URL, then the public endpoint.
    "provider_url": "",
    "chat_model": DEFAULT_CHAT_MODEL,
    "image_model": DEFAULT_IMAGE_MODEL,
    "default_visual_style": DEFAULT_VISUAL_STYLE,
}

_SCALARS = ("provider_url", "chat_model", "image_model", "default_visual_style")


def _migrate_legacy_keys(kv: KeyValueStore, stored: dict[str, Any]) -> bool:
    """Fold bare legacy API-key entries into stored["api_keys"]. Returns True if any moved."""
    moved = False
    for legacy, provider in _LEGACY_KEY_NAMES.items():
        value = kv.get(legacy)
        if value is None:
            continue
        keys = stored.setdefault("api_keys", {})
        if not keys.get(provider):
            keys[provider] = value
        kv.delete(legacy)
        moved = True
    return moved


def get_config(kv: KeyValueStore) -> dict[str, Any]:
    """Read settings, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    stored = kv.get(CONFIG_KEY) or {}
    if _migrate_legacy_keys(kv, stored):
        kv.put(CONFIG_KEY, stored)
    if isinstance(stored.get("api_keys"), dict):
        config["api_keys"].update(stored["api_keys"])
    for key in _SCALARS:
        if key in stored:
            config[key] = stored[key]
    return config


def update_config(kv: KeyValueStore, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into settings and persist. Returns full settings.

    api_keys merge provider-by-provider; scalars are overwritten.
    """
    config = get_config(kv)
    if isinstance(fields.get("api_keys"), dict):
        config["api_keys"].update(fields["api_keys"])
    for key in _SCALARS:
        if key in fields:
            config[key] = fields[key]
    kv.put(CONFIG_KEY, config)
    return config


def public_config(config: dict[str, Any]) -> dict[str, Any]:
    """Settings safe to send to a browser: API keys reduced to set/unset flags."""
    view = {k: v for k, v in config.items() if k != "api_keys"}
    view["api_keys"] = {name: bool(value) for name, value in config["api_keys"].items()}
    return view
