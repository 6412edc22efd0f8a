from typing import Optional, List
import json
from sqlmodel import SQLModel, Field

from src.schemas import Card

class CardRecord(SQLModel, table=True):
    """
    A stored flashcard in a card database. Options are kept as a JSON array string.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    position: int = Field(default=0, index=True)

    question: str
    answer: str
    options_json: Optional[str] = Field(default=None)

    def to_card(self) -> Card:
        options: Optional[List[str]] = json.loads(self.options_json) if self.options_json else None
        return Card(question=self.question, answer=self.answer, options=options)

    @classmethod
    def from_card(cls, card: Card, position: int) -> "CardRecord":
        return cls(
            position=position,
            question=card.question,
            answer=card.answer,
            options_json=json.dumps(list(card.options)) if card.options else None,
        )
