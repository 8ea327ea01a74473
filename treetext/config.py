"""Persistent JSON config helpers.

Stores default hash algorithm, rendering font and style, and traversal
preferences. All access is defensive: malformed or missing config falls back
safely to defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .codec.hashing import DEFAULT_HASH_ALGORITHM, HASH_ALGORITHMS

logger = logging.getLogger(__name__)

APP_NAME = "treetext"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_HTML_STYLE = "default"
DEFAULT_PDF_FONT_SIZE = 9.0


@dataclass(frozen=True)
class Settings:
    """Effective configuration after validation."""

    hash_algorithm: str = DEFAULT_HASH_ALGORITHM
    font_path: str | None = None
    html_style: str = DEFAULT_HTML_STYLE
    pdf_font_size: float = DEFAULT_PDF_FONT_SIZE
    skip_gitignored: bool = False


SETTING_KEYS = tuple(Settings.__dataclass_fields__)


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so a read-only config
    directory never breaks encoding or decoding.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _coerce_hash_algorithm(value: object) -> str | None:
    return value if isinstance(value, str) and value in HASH_ALGORITHMS else None


def _coerce_font_size(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if value > 0 else None


def load_settings() -> Settings:
    """Return validated settings; invalid values fall back to defaults."""
    data = load_config()
    defaults = Settings()
    font_path = data.get("font_path")
    html_style = data.get("html_style")
    skip_gitignored = data.get("skip_gitignored")
    return Settings(
        hash_algorithm=_coerce_hash_algorithm(data.get("hash_algorithm")) or defaults.hash_algorithm,
        font_path=font_path if isinstance(font_path, str) and font_path else None,
        html_style=html_style if isinstance(html_style, str) and html_style else defaults.html_style,
        pdf_font_size=_coerce_font_size(data.get("pdf_font_size")) or defaults.pdf_font_size,
        skip_gitignored=skip_gitignored if isinstance(skip_gitignored, bool) else defaults.skip_gitignored,
    )


def parse_setting(key: str, text: str) -> object:
    """Convert a command-line string into the stored type for ``key``."""
    if key not in SETTING_KEYS:
        raise ValueError(f"unknown setting {key!r} (expected one of {', '.join(SETTING_KEYS)})")
    if key == "hash_algorithm":
        value = _coerce_hash_algorithm(text)
        if value is None:
            raise ValueError(f"hash_algorithm must be one of {', '.join(HASH_ALGORITHMS)}")
        return value
    if key == "pdf_font_size":
        try:
            size = _coerce_font_size(float(text))
        except ValueError:
            size = None
        if size is None:
            raise ValueError("pdf_font_size must be a positive number")
        return size
    if key == "skip_gitignored":
        lowered = text.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("skip_gitignored must be true or false")
    return text


def save_setting(key: str, text: str) -> object:
    """Validate and persist one setting; return the stored value."""
    value = parse_setting(key, text)
    config = load_config()
    config[key] = value
    save_config(config)
    return value


def settings_as_dict(settings: Settings) -> dict[str, object]:
    return asdict(settings)


__all__ = [
    "CONFIG_PATH",
    "SETTING_KEYS",
    "Settings",
    "load_config",
    "load_settings",
    "parse_setting",
    "save_config",
    "save_setting",
    "settings_as_dict",
]
