# src/services/card_source.py
import json
from pathlib import Path
from typing import Any, List, Tuple

import bleach
import httpx
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.core.errors import EmptySource, SourceUnavailable
from src.core.log_manager import logger
from src.database import get_engine, read_cards
from src.schemas import Card, CardDeckDTO

ALLOWED_TAGS = ['b', 'i', 'strong', 'em', 'p', 'br', 'ul', 'ol', 'li', 'code', 'pre', 'sub', 'sup', 'span']
REQUEST_TIMEOUT = 10.0

def sanitize_html(content: str) -> str:
    if not content: return ""
    return bleach.clean(content, tags=ALLOWED_TAGS, strip=True)

def sanitize_card(card: Card) -> Card:
    """Returns a copy of the card with every text field cleaned. Answer and options are cleaned alike so they still match."""
    options = [sanitize_html(o) for o in card.options] if card.options else None
    return Card(
        question=sanitize_html(card.question),
        answer=sanitize_html(card.answer),
        options=options,
    )

def parse_cards(payload: Any) -> List[Card]:
    """
    1. Accepts a bare list of cards or an object with a `cards` list.
    2. Validates the schema.
    3. Sanitizes HTML.
    Raises SourceUnavailable on malformed payloads and EmptySource when there are no cards.
    """
    if isinstance(payload, list):
        payload = {"cards": payload}
    if not isinstance(payload, dict):
        raise SourceUnavailable("Card payload must be a list or an object with a 'cards' list.")

    try:
        deck = CardDeckDTO(**payload)
        cards = [sanitize_card(card) for card in deck.cards]
    except ValidationError as e:
        raise SourceUnavailable(f"Schema Error: {e}") from e

    if not cards:
        raise EmptySource("The card source contains no cards.")
    return cards

def _read_http(url: str) -> Any:
    try:
        response = httpx.get(url, timeout=REQUEST_TIMEOUT, follow_redirects=True)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        raise SourceUnavailable(f"Failed to load flashcards from {url}: {e}") from e
    except ValueError as e:
        raise SourceUnavailable(f"Invalid JSON received from {url}.") from e

def _read_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise SourceUnavailable(f"Card file not found: {path}") from e
    except OSError as e:
        raise SourceUnavailable(f"Could not read card file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SourceUnavailable(f"Invalid JSON file format in {path}.") from e
    except UnicodeDecodeError as e:
        raise SourceUnavailable(f"Card file {path} is not valid UTF-8.") from e

def _read_database(location: str) -> List[Card]:
    try:
        return [sanitize_card(card) for card in read_cards(get_engine(location))]
    except SQLAlchemyError as e:
        raise SourceUnavailable(f"Could not read card database {location}: {e}") from e
    except (ValueError, ValidationError) as e:
        # Bad options JSON or a row that fails card validation
        raise SourceUnavailable(f"Malformed card in database {location}: {e}") from e

def is_database_location(location: str) -> bool:
    return location.startswith("sqlite:") or location.endswith((".db", ".sqlite", ".sqlite3"))

def load_cards(location: str) -> Tuple[Card, ...]:
    """
    Resolves the configured card source into an ordered tuple of cards.
    `location` is an http(s) URL serving JSON, a SQLite card database, or a local JSON file.
    """
    logger.info(f"Loading flashcards from {location}")
    try:
        if location.startswith(("http://", "https://")):
            cards = parse_cards(_read_http(location))
        elif is_database_location(location):
            cards = _read_database(location)
            if not cards:
                raise EmptySource("The card database contains no cards.")
        else:
            cards = parse_cards(_read_file(Path(location)))
    except SourceUnavailable as e:
        logger.error(f"Error loading flashcards: {e}")
        raise

    logger.info(f"Loaded {len(cards)} flashcards.")
    return tuple(cards)
