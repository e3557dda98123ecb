"""
Internationalization (i18n) for prayer titles, reminders and error messages.

Provides YAML-based translation loading and dot-notation key lookup with
fallback chain (requested locale → ko → raw key).

Usage:
    from prayanswer.core.i18n import t

    text = t("target.title_format", "ko", target="엄마", category="가족")
"""

import glob
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

logger = logging.getLogger(__name__)

# Module-level state
_translations: Dict[str, Dict[str, Any]] = {}  # locale -> nested dict
SUPPORTED_LOCALES: Set[str] = set()
DEFAULT_LOCALE = "ko"


def _get_locales_dir() -> Path:
    """Get the locales directory path, trying multiple resolution strategies."""
    # Strategy 1: Relative to this source file
    source_based = Path(__file__).resolve().parent.parent.parent / "locales"
    if source_based.is_dir():
        return source_based
    # Strategy 2: Relative to CWD
    cwd_based = Path.cwd() / "locales"
    if cwd_based.is_dir():
        return cwd_based
    return source_based


def load_translations(locales_dir: Optional[Path] = None) -> None:
    """Load all locale YAML files from the locales directory.

    Args:
        locales_dir: Override path for testing. Defaults to project locales/.
    """
    if locales_dir is None:
        locales_dir = _get_locales_dir()

    _translations.clear()
    SUPPORTED_LOCALES.clear()

    yaml_files = sorted(glob.glob(str(locales_dir / "*.yaml")))
    for filepath in yaml_files:
        locale = Path(filepath).stem  # e.g. "ko" from "ko.yaml"
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load locale file {filepath}: {e}")
            continue
        if data and isinstance(data, dict):
            _translations[locale] = data
            SUPPORTED_LOCALES.add(locale)
            logger.info(f"Loaded locale: {locale} ({len(data)} top-level keys)")

    if DEFAULT_LOCALE not in SUPPORTED_LOCALES:
        logger.warning(f"Default locale '{DEFAULT_LOCALE}' not found in {locales_dir}")


def _resolve_key(data: Dict[str, Any], key: str) -> Optional[str]:
    """Resolve a dot-notation key in a nested dict, returning only leaf strings."""
    current = data
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return None
    if current is None or isinstance(current, (dict, list)):
        return None
    return str(current)


def t(key: str, locale: Optional[str] = None, **kwargs: Any) -> str:
    """Translate a key with fallback chain and interpolation.

    Fallback order: requested locale → DEFAULT_LOCALE ("ko") → raw key.

    Args:
        key: Dot-notation translation key (e.g. "dday.notification_title").
        locale: Target locale code (e.g. "en"). Falls back to DEFAULT_LOCALE.
        **kwargs: Interpolation variables for str.format_map().

    Returns:
        Translated string with interpolation applied.
    """
    if not _translations:
        load_translations()

    locale = normalize_locale(locale)

    if locale in _translations:
        value = _resolve_key(_translations[locale], key)
        if value is not None:
            return _interpolate(value, kwargs)

    if locale != DEFAULT_LOCALE and DEFAULT_LOCALE in _translations:
        value = _resolve_key(_translations[DEFAULT_LOCALE], key)
        if value is not None:
            return _interpolate(value, kwargs)

    logger.debug(f"Missing translation: key={key}, locale={locale}")
    return key


def _interpolate(template: str, variables: Dict[str, Any]) -> str:
    """Interpolate variables, returning the template as-is if it fails."""
    if not variables:
        return template
    try:
        return template.format_map(variables)
    except (KeyError, ValueError, IndexError):
        logger.debug(f"Interpolation failed for template: {template[:80]}")
        return template


def normalize_locale(raw: Optional[str]) -> str:
    """Normalize a locale string to a supported locale code.

    Examples:
        "ko-KR" → "ko"
        "en_US" → "en"
        None    → "ko"
        "xx"    → "ko" (unsupported)
    """
    if not raw:
        return DEFAULT_LOCALE

    base = raw.lower().split("-")[0].split("_")[0].strip()
    if not base:
        return DEFAULT_LOCALE

    if not SUPPORTED_LOCALES:
        load_translations()

    if base in SUPPORTED_LOCALES:
        return base

    return DEFAULT_LOCALE
