# src/core/locale_manager.py

import json
from typing import Dict, Any, List, Optional
import importlib.resources as pkg_resources
from nicegui import app
from src.core.log_manager import logger

# Directory holding the locale files (en.json, ...)
I18N_PACKAGE_REF = pkg_resources.files('i18n')

FALLBACK_LOCALE = 'en'

class LocaleManager:
    """
    Loads every `i18n/<locale>.json` file once and resolves UI strings for the locale
    stored in the NiceGUI user session ('ui_language').
    """

    def __init__(self, package_ref=I18N_PACKAGE_REF):
        self._package_ref = package_ref
        self._all_translations: Dict[str, Dict[str, str]] = {}

        self._fallback_translations = self._load_translations(FALLBACK_LOCALE)
        self._all_translations[FALLBACK_LOCALE] = self._fallback_translations

        try:
            for path in self._package_ref.iterdir():
                if path.name.endswith('.json'):
                    locale_code = path.name[:-len('.json')]
                    if locale_code not in self._all_translations:
                        self._all_translations[locale_code] = self._load_translations(locale_code)
        except OSError as e:
            logger.error(f"Error during locale discovery: {e}")

        logger.info(f"LocaleManager initialized. Supported: {self.supported_locales}. Fallback: {FALLBACK_LOCALE}")

    def _load_translations(self, locale: str) -> Dict[str, str]:
        file_path = self._package_ref / f'{locale}.json'
        try:
            with file_path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Translation resource not found for locale '{locale}'.")
            return {}
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON format in file for locale '{locale}': {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Translation file for locale '{locale}' must hold a JSON object.")
            return {}
        return data

    @property
    def supported_locales(self) -> List[str]:
        return list(self._all_translations.keys())

    def current_locale(self) -> str:
        try:
            return app.storage.user.get('ui_language', FALLBACK_LOCALE)
        except RuntimeError:
            # No page context (startup, background tasks)
            return FALLBACK_LOCALE

    def T(self, key: str, use_fallback=False, locale: Optional[str] = None, **kwargs: Any) -> str:
        """
        Translates `key` and interpolates `kwargs` with str.format.
        Missing keys fall back to the fallback locale, then to a visible `!! key !!` marker.
        """
        if use_fallback:
            locale = FALLBACK_LOCALE
        locale = locale or self.current_locale()

        translated_string = self._all_translations.get(locale, {}).get(key)
        if translated_string is None:
            translated_string = self._fallback_translations.get(key)
            if translated_string is None:
                logger.warning(f"Missing translation key '{key}' in both '{locale}' and fallback locales.")
                return f"!! {key} !!"
            logger.warning(f"Missing translation key '{key}' for locale '{locale}'.")

        if kwargs:
            try:
                return translated_string.format(**kwargs)
            except (KeyError, IndexError, ValueError) as e:
                logger.error(f"Formatting failed for key '{key}' in locale '{locale}': {e}")
                return translated_string

        return translated_string

global_locale_manager = LocaleManager()

T = global_locale_manager.T

SUPPORTED_LOCALES = global_locale_manager.supported_locales
