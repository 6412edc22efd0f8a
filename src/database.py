# src/database.py
from typing import Iterable, List
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session, select

from src.core.log_manager import logger
from src.models import CardRecord
from src.schemas import Card

def to_database_url(location: str) -> str:
    """Accepts either a full `sqlite:///` URL or a plain path to a `.db` file."""
    if location.startswith("sqlite:"):
        return location
    return f"sqlite:///{location}"

def get_engine(location: str) -> Engine:
    # check_same_thread=False is needed for SQLite with NiceGUI/FastAPI concurrency
    return create_engine(to_database_url(location), echo=False, connect_args={"check_same_thread": False})

def init_db(engine: Engine):
    """
    Creates the card table if it does not exist yet.
    """
    SQLModel.metadata.create_all(engine)
    logger.info(f"Card database initialized at {engine.url}")

def seed_cards(engine: Engine, cards: Iterable[Card]) -> int:
    """
    Bulk-loads a deck into the card database, appending after any stored cards.
    Returns: Number of cards written.
    """
    init_db(engine)
    with Session(engine) as session:
        offset = len(session.exec(select(CardRecord.id)).all())
        records = [CardRecord.from_card(card, offset + i) for i, card in enumerate(cards)]
        session.add_all(records)
        session.commit()
    logger.info(f"Seeded {len(records)} cards into {engine.url}")
    return len(records)

def read_cards(engine: Engine) -> List[Card]:
    """Returns every stored card in insertion order."""
    with Session(engine) as session:
        statement = select(CardRecord).order_by(CardRecord.position, CardRecord.id)
        return [record.to_card() for record in session.exec(statement).all()]
