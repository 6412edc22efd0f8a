import json
from pathlib import Path
from typing import Dict, Set

I18N_DIR = Path(__file__).resolve().parent

def missing_keys_by_locale(base_path: Path = I18N_DIR) -> Dict[str, Set[str]]:
    """Maps every locale file in `base_path` to the keys that some other locale has and it lacks."""
    locale_key_map: Dict[str, Set[str]] = {}
    for file_path in sorted(base_path.glob('*.json')):
        with open(file_path, 'r', encoding='utf-8') as f:
            locale_key_map[file_path.stem] = set(json.load(f).keys())

    all_keys = set().union(*locale_key_map.values()) if locale_key_map else set()
    return {locale: all_keys - keys for locale, keys in locale_key_map.items()}

def print_translation_summary():
    for locale, missing in missing_keys_by_locale().items():
        if missing:
            print(f"Locale '{locale}' is missing {len(missing)} keys:")
            for key in sorted(missing):
                print(f"  - {key}")
        else:
            print(f"Locale '{locale}' has all keys.")

if __name__ == "__main__":
    print_translation_summary()
