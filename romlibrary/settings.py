"""Application settings for the ROM library importer."""
from __future__ import annotations

import json
import os
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError
from .shared_config import (
    DEFAULT_API_TIMEOUT_MS, DEFAULT_BATCH_SIZE, DEFAULT_GEMINI_MODEL, DEFAULT_ROM_ROOT,
    IGNORED_ROM_EXTENSIONS, LIBRARY_DATA_DIR, LOGS_DIR, PROVIDER_ALIASES, PROVIDER_MOCK,
    PROVIDERS, SETTINGS_FILE, TGDB_PLATFORMS_FILE,
)

DEFAULT_SETTINGS_PATH = SETTINGS_FILE

DEFAULT_SETTINGS: Dict[str, Any] = {
    "sandbox_root": DEFAULT_ROM_ROOT,
    "data_dir": LIBRARY_DATA_DIR,
    "log_dir": LOGS_DIR,
    "scan": {
        "ignored_extensions": list(IGNORED_ROM_EXTENSIONS),
    },
    "enrichment": {
        "provider": PROVIDER_MOCK,
        "batch_size": DEFAULT_BATCH_SIZE,
        "timeout_ms": DEFAULT_API_TIMEOUT_MS,
        "gemini": {
            "api_key": "",
            "model": DEFAULT_GEMINI_MODEL,
        },
    },
    "catalog": {
        "thegamesdb_api_key": "",
        "rawg_api_key": "",
        "platforms_file": "",
    },
}

# environment variable -> (settings path, converter)
ENV_OVERRIDES = {
    "ROMLIB_ROOT": (("sandbox_root",), str),
    "ROMLIB_DATA_DIR": (("data_dir",), str),
    "ROMLIB_PROVIDER": (("enrichment", "provider"), str),
    "ROMLIB_BATCH_SIZE": (("enrichment", "batch_size"), int),
    "EXTERNAL_API_TIMEOUT": (("enrichment", "timeout_ms"), int),
    "GEMINI_API_KEY": (("enrichment", "gemini", "api_key"), str),
    "GEMINI_MODEL_NAME": (("enrichment", "gemini", "model"), str),
    "THEGAMESDB_API_KEY": (("catalog", "thegamesdb_api_key"), str),
    "RAWG_API_KEY": (("catalog", "rawg_api_key"), str),
}


@dataclass
class AppConfig:
    """Explicit configuration handed to the pipeline components"""
    sandbox_root: str
    data_dir: str
    log_dir: str = LOGS_DIR
    enrichment_provider: str = PROVIDER_MOCK
    batch_size: int = DEFAULT_BATCH_SIZE
    api_timeout_s: float = DEFAULT_API_TIMEOUT_MS / 1000.0
    ignored_extensions: List[str] = field(default_factory=lambda: list(IGNORED_ROM_EXTENSIONS))
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    thegamesdb_api_key: str = ""
    tgdb_platforms_path: str = ""
    rawg_api_key: str = ""

    def __post_init__(self):
        provider = (self.enrichment_provider or "").strip().lower()
        provider = PROVIDER_ALIASES.get(provider, provider)
        known = {p["id"] for p in PROVIDERS}
        if provider not in known:
            raise ConfigurationError(f"Unknown enrichment provider: {self.enrichment_provider}")
        self.enrichment_provider = provider
        if int(self.batch_size) < 1:
            raise ConfigurationError("batch_size must be at least 1")
        self.batch_size = int(self.batch_size)
        self.ignored_extensions = [_normalize_ext(e) for e in self.ignored_extensions if e]
        if not self.tgdb_platforms_path:
            self.tgdb_platforms_path = os.path.join(self.data_dir, TGDB_PLATFORMS_FILE)

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'AppConfig':
        enrichment = settings.get("enrichment", {})
        catalog = settings.get("catalog", {})
        return cls(
            sandbox_root=os.path.expanduser(settings.get("sandbox_root") or DEFAULT_ROM_ROOT),
            data_dir=os.path.expanduser(settings.get("data_dir") or LIBRARY_DATA_DIR),
            log_dir=os.path.expanduser(settings.get("log_dir") or LOGS_DIR),
            enrichment_provider=enrichment.get("provider", PROVIDER_MOCK),
            batch_size=enrichment.get("batch_size", DEFAULT_BATCH_SIZE),
            api_timeout_s=float(enrichment.get("timeout_ms", DEFAULT_API_TIMEOUT_MS)) / 1000.0,
            ignored_extensions=list(settings.get("scan", {}).get("ignored_extensions", IGNORED_ROM_EXTENSIONS)),
            gemini_api_key=enrichment.get("gemini", {}).get("api_key", ""),
            gemini_model=enrichment.get("gemini", {}).get("model", DEFAULT_GEMINI_MODEL),
            thegamesdb_api_key=catalog.get("thegamesdb_api_key", ""),
            tgdb_platforms_path=os.path.expanduser(catalog.get("platforms_file") or ""),
            rawg_api_key=catalog.get("rawg_api_key", ""),
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """Settings safe to show to a client (no API keys)."""
        return {
            "sandbox_root": self.sandbox_root,
            "provider": self.enrichment_provider,
            "batch_size": self.batch_size,
            "ignored_extensions": list(self.ignored_extensions),
            "catalog_configured": bool(self.thegamesdb_api_key),
            "rawg_configured": bool(self.rawg_api_key),
        }


def _normalize_ext(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    out = deepcopy(base)
    for k, v in (updates or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = deepcopy(v)
    return out


def _apply_env(settings: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    out = deepcopy(settings)
    for var, (keys, convert) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid value for {var}: {raw!r}")
        node = out
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value
    return out


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    if not os.path.exists(path):
        return deepcopy(DEFAULT_SETTINGS)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read settings file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return _deep_merge(DEFAULT_SETTINGS, data)


def save_settings(settings: Dict[str, Any], path: str = DEFAULT_SETTINGS_PATH) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings, f, ensure_ascii=False, indent=2)


def load_config(path: str = DEFAULT_SETTINGS_PATH,
                env: Optional[Mapping[str, str]] = None,
                overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Build the process configuration: defaults, settings file, environment, overrides."""
    settings = load_settings(path)
    settings = _apply_env(settings, os.environ if env is None else env)
    if overrides:
        settings = _deep_merge(settings, overrides)
    return AppConfig.from_settings(settings)
