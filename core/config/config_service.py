"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Optional, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"

ENV_PREFIX = "ESIGN_"
ENV_CONFIG_FILE = "ESIGN_CONFIG"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Signing": {
        "backup_ttl_hours": "24",
        "autosave_quiet_seconds": "2.0",
        "enforce_signing_order": "false",
    },
    "Signature": {
        "history_limit": "50",
        "canvas_width": "600",
        "canvas_height": "200",
        "stroke_width": "3",
        "stroke_color": "#000000",
        "fonts_dir": (PROJECT_ROOT / "signature" / "fonts").as_posix(),
        "date_format": "%Y-%m-%d",
    },
    "Retry": {
        "max_attempts": "3",
        "base_delay_seconds": "0.5",
    },
    "Logging": {
        "level": "INFO",
        "event_db": (PROJECT_ROOT / "databases" / "events.db").as_posix(),
    },
    "Backup": {
        "encryption_key": "",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class SigningConfig:
    backup_ttl_hours: float = 24.0
    autosave_quiet_seconds: float = 2.0
    enforce_signing_order: bool = False


@dataclass
class SignatureCanvasConfig:
    history_limit: int = 50
    canvas_width: int = 600
    canvas_height: int = 200
    stroke_width: int = 3
    stroke_color: str = "#000000"
    fonts_dir: Path = PROJECT_ROOT / "signature" / "fonts"
    date_format: str = "%Y-%m-%d"


@dataclass
class RetryConfig:
    max_attempts: int = 3
    base_delay_seconds: float = 0.5


@dataclass
class LoggingConfig:
    level: str = "INFO"
    event_db: Path = PROJECT_ROOT / "databases" / "events.db"


@dataclass
class BackupConfig:
    encryption_key: str = ""


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


_TYPES: Dict[str, type] = {"Path": Path, "bool": bool, "int": int, "float": float, "str": str}


def _cast(value: Any, typ: Any) -> Any:
    # annotations are strings under `from __future__ import annotations`
    if isinstance(typ, str):
        typ = _TYPES.get(typ, str)
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays(environ: Dict[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety.

    Precedence (lowest first): embedded defaults, ``defaults.ini``,
    ``ESIGN_<SECTION>__<KEY>`` environment variables, machine INI
    (explicit ``config_file`` or the path in ``ESIGN_CONFIG``).
    """

    def __init__(self, config_file: Optional[str | Path] = None, *,
                 environ: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._environ = dict(os.environ if environ is None else environ)
        explicit = config_file or self._environ.get(ENV_CONFIG_FILE)
        self._machine_ini: Optional[Path] = Path(explicit) if explicit else None
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if DEFAULTS_INI.exists():
                cp = configparser.ConfigParser(interpolation=None)
                cp.read(DEFAULTS_INI, encoding="utf-8")
                _apply(merged, _cp_to_dict(cp), "defaults.ini", str(DEFAULTS_INI), sources)

            # Layer 2: environment variables
            env = _env_overlays(self._environ)
            _apply(merged, env, "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini is not None and self._machine_ini.exists():
                cp = configparser.ConfigParser(interpolation=None)
                cp.read(self._machine_ini, encoding="utf-8")
                _apply(merged, _cp_to_dict(cp), "machine", str(self._machine_ini), sources)

            self._merged = merged
            self._sources = sources

            self.signing = _build_dataclass(SigningConfig, merged.get("Signing", {}))
            self.signature = _build_dataclass(SignatureCanvasConfig, merged.get("Signature", {}))
            self.retry = _build_dataclass(RetryConfig, merged.get("Retry", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))
            self.backup = _build_dataclass(BackupConfig, merged.get("Backup", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))
