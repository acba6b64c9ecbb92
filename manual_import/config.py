from __future__ import annotations

import configparser
from pathlib import Path
from typing import Callable, TypeVar

from manual_import.exceptions import ConfigError
from manual_import.models.config import AppConfig

CONFIG_FILENAME = ".manual-import.ini"
_SECTION = "manual-import"
_REQUIRED_KEYS = ("database_url", "actor_id")

_T = TypeVar("_T")


def config_exists(directory: Path) -> bool:
    return (directory / CONFIG_FILENAME).is_file()


def write_config(directory: Path, config: AppConfig) -> None:
    cp = configparser.ConfigParser(interpolation=None)
    cp[_SECTION] = {
        "database_url": config.database_url,
        "actor_id": str(config.actor_id),
        "decoder_url": config.decoder_url,
        "decoder_timeout": str(config.decoder_timeout),
        "max_docx_mb": str(config.max_docx_mb),
        "max_pdf_mb": str(config.max_pdf_mb),
        "patterns": config.patterns,
        "watermarks": "\n".join(config.watermarks),
    }
    path = directory / CONFIG_FILENAME
    with open(path, "w", encoding="utf-8") as f:
        cp.write(f)


def read_config(directory: Path) -> AppConfig:
    path = directory / CONFIG_FILENAME
    if not path.is_file():
        raise ConfigError(
            "Configuration not found. Run manual-import --init first."
        )

    # Interpolation off: database URLs may contain '%' escapes.
    cp = configparser.ConfigParser(interpolation=None)
    try:
        cp.read(str(path), encoding="utf-8")
    except configparser.Error as exc:
        raise ConfigError(
            f"Invalid configuration format in {CONFIG_FILENAME}. "
            "Run manual-import --init to reconfigure."
        ) from exc

    if not cp.has_section(_SECTION):
        raise ConfigError(
            f"Invalid configuration: missing [{_SECTION}] section in {CONFIG_FILENAME}."
        )

    for key in _REQUIRED_KEYS:
        if not cp.has_option(_SECTION, key) or not cp.get(_SECTION, key).strip():
            raise ConfigError(
                f"Invalid configuration: missing or empty '{key}' in {CONFIG_FILENAME}. "
                "Run manual-import --init to reconfigure."
            )

    watermarks = cp.get(_SECTION, "watermarks", fallback="")
    return AppConfig(
        database_url=cp.get(_SECTION, "database_url").strip(),
        actor_id=_get_typed(cp, "actor_id", int, 0),
        decoder_url=cp.get(_SECTION, "decoder_url", fallback="").strip(),
        decoder_timeout=_get_typed(cp, "decoder_timeout", float, 30.0),
        max_docx_mb=_get_typed(cp, "max_docx_mb", float, 20.0),
        max_pdf_mb=_get_typed(cp, "max_pdf_mb", float, 50.0),
        patterns=cp.get(_SECTION, "patterns", fallback="generic").strip() or "generic",
        watermarks=tuple(line.strip() for line in watermarks.splitlines() if line.strip()),
    )


def _get_typed(
    cp: configparser.ConfigParser, key: str, convert: Callable[[str], _T], default: _T,
) -> _T:
    raw = cp.get(_SECTION, key, fallback="").strip()
    if not raw:
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigError(
            f"Invalid configuration: '{key}' has an invalid value in {CONFIG_FILENAME}."
        ) from exc
