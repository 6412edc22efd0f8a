import random

import pytest

from src.schemas import Card
from src.services.session_service import Mode, StudySession


def make_cards(n, with_options=True):
    cards = []
    for i in range(n):
        options = [f"A{i}", f"B{i}", f"C{i}", f"D{i}"] if with_options else None
        cards.append(Card(question=f"Q{i}", answer=f"A{i}", options=options))
    return cards


@pytest.fixture
def card_maker():
    return make_cards


@pytest.fixture
def cards():
    return make_cards(10)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def session_factory():
    """Builds a session over `cards` whose round keeps the source order (identity shuffle)."""

    class KeepOrder(random.Random):
        def shuffle(self, x):
            return None

    def build(cards, round_size=None, mode=None, on_feedback=None):
        session = StudySession(
            round_size=round_size or len(cards),
            rng=KeepOrder(),
            on_feedback=on_feedback,
        )
        session.attach_cards(cards)
        if mode is not None:
            session.enter_mode(mode)
        return session

    return build


@pytest.fixture
def quiz_abc(session_factory):
    abc = [
        Card(question="A?", answer="a", options=["a", "x", "y"]),
        Card(question="B?", answer="b", options=["b", "x", "y"]),
        Card(question="C?", answer="c", options=["c", "x", "y"]),
    ]
    return session_factory(abc, mode=Mode.QUIZ)
