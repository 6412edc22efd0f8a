# src/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional, Tuple

class Card(BaseModel):
    """
    A single flashcard. Immutable once loaded; `options` is only present for quiz-capable cards.
    """
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    options: Optional[Tuple[str, ...]] = None

    @field_validator('question', 'answer')
    def validate_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Card text must not be empty.")
        return v

    @field_validator('options')
    def validate_options(cls, v):
        if v is None:
            return None
        cleaned = tuple(o.strip() for o in v)
        if any(not o for o in cleaned):
            raise ValueError("Options must not be empty strings.")
        # An empty list means a free-form card
        return cleaned or None

    @property
    def has_options(self) -> bool:
        return bool(self.options)

class CardDeckDTO(BaseModel):
    """Payload shape accepted from a card source: `{"cards": [...]}` or a bare list."""
    title: Optional[str] = None
    cards: List[Card]

class RoundSummary(BaseModel):
    """
    The terminal results of a quiz round, as shown on the results screen.
    """
    score: int
    attempts: int
    round_length: int
    accuracy: int
    band: str
    missed_questions: List[str] = Field(default_factory=list)
