import secrets
from typing import Optional
import dotenv
import os
dotenv.load_dotenv("secrets.env")

DEFAULT_CARDS_PER_ROUND = 5
DEFAULT_RESHUFFLE_DELAY = 0.8

def parse_round_size(raw: Optional[str], default: int = DEFAULT_CARDS_PER_ROUND) -> int:
    """
    Parses the configured round size. Absent, non-numeric or non-positive values fall back to the default.
    """
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default

def parse_delay(raw: Optional[str], default: float = DEFAULT_RESHUFFLE_DELAY) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_hex(32)

CARDS_SOURCE = os.getenv("CARDS_SOURCE", "data/flashcards.json")
CARDS_PER_ROUND: int = parse_round_size(os.getenv("CARDS_PER_ROUND"))
RESHUFFLE_DELAY: float = parse_delay(os.getenv("RESHUFFLE_DELAY"))

APP_PORT = int(os.getenv("APP_PORT", "8080"))
