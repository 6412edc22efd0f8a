# src/services/import_service.py
import json
import sys
from collections import Counter
from pathlib import Path

from src.core.errors import SourceUnavailable
from src.core.log_manager import logger
from src.database import get_engine, seed_cards
from src.services.card_source import parse_cards

def preview_deck(file_content: str) -> dict:
    """
    1. Parses JSON.
    2. Validates and sanitizes the cards.
    3. Calculates stats for a confirmation printout.
    Returns: A dict containing the 'cards' and 'stats'.
    """
    try:
        data = json.loads(file_content)
    except json.JSONDecodeError as e:
        raise SourceUnavailable("Invalid JSON file format.") from e

    cards = parse_cards(data)
    option_counts = Counter(len(c.options) if c.options else 0 for c in cards)

    stats = {
        "card_count": len(cards),
        "quiz_ready": sum(1 for c in cards if c.has_options),
        "option_counts": dict(option_counts),
    }
    return {"cards": cards, "stats": stats}

def import_deck_file(path: Path, db_location: str) -> int:
    """
    Loads a JSON deck file into a SQLite card database, so it can be used as CARDS_SOURCE.
    Returns: Number of imported cards.
    """
    preview = preview_deck(Path(path).read_text(encoding="utf-8"))
    count = seed_cards(get_engine(db_location), preview["cards"])
    logger.info(f"Import Success: {count} cards from '{path}' ({preview['stats']['quiz_ready']} quiz-ready)")
    return count

if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python -m src.services.import_service <deck.json> <cards.db>")
        sys.exit(2)
    import_deck_file(Path(sys.argv[1]), sys.argv[2])
