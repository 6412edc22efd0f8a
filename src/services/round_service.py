# src/services/round_service.py
from typing import Optional, Sequence, Tuple
import random

from src.core.errors import EmptySource
from src.core.log_manager import logger
from src.schemas import Card

Round = Tuple[Card, ...]

def select_round(
    all_cards: Sequence[Card],
    round_size: int,
    rng: Optional[random.Random] = None
) -> Round:
    """
    Samples a new round: a uniform shuffle of the whole collection, truncated to `round_size`.
    The input sequence is never mutated. Pass a seeded `random.Random` for deterministic rounds.
    Returns: Tuple of min(round_size, len(all_cards)) cards.
    """
    if not all_cards:
        raise EmptySource("Cannot select a round from an empty card collection.")
    if isinstance(round_size, bool) or not isinstance(round_size, int) or round_size < 1:
        raise ValueError(f"Round size must be a positive integer, got {round_size!r}.")

    rng = rng or random.Random()
    pool = list(all_cards)
    rng.shuffle(pool)

    selected = tuple(pool[:round_size])
    logger.debug(f"Selected round of {len(selected)} cards from {len(all_cards)} available.")
    return selected
