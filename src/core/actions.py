# src/core/actions.py
from enum import Enum
from typing import NamedTuple, Optional

from src.services.session_service import Feedback, Mode, StudySession

MAX_OPTIONS = 4

class Action(str, Enum):
    FLIP = "flip"
    NEXT = "next"
    PREVIOUS = "previous"
    MARK_LEARNED = "mark_learned"
    SELECT_OPTION = "select_option"

class Command(NamedTuple):
    action: Action
    option_number: Optional[int] = None  # 1-based, only for SELECT_OPTION

KEY_MAP = {
    ' ': Action.FLIP,
    'Enter': Action.FLIP,
    'ArrowRight': Action.NEXT,
    'ArrowLeft': Action.PREVIOUS,
    'l': Action.MARK_LEARNED,
}

OPTION_KEYS = {str(n): n for n in range(1, MAX_OPTIONS + 1)}

def command_for_key(key: str) -> Optional[Command]:
    """Translates a key name into a command. Unknown keys map to None."""
    if key in KEY_MAP:
        return Command(KEY_MAP[key])
    if key in OPTION_KEYS:
        return Command(Action.SELECT_OPTION, OPTION_KEYS[key])
    return None

def dispatch(session: StudySession, command: Command) -> Optional[Feedback]:
    """
    Runs the session operation for a command, the same one the on-screen controls call.
    Mark-learned is only sent in Study mode and option keys only while the quiz card
    is unrevealed and has that option; otherwise the key is ignored.
    """
    if session.mode == Mode.HOME:
        return None

    if command.action == Action.FLIP:
        return session.reveal()
    if command.action == Action.NEXT:
        return session.next_card()
    if command.action == Action.PREVIOUS:
        return session.prev_card()
    if command.action == Action.MARK_LEARNED:
        if session.mode != Mode.STUDY:
            return None
        return session.mark_learned()

    # SELECT_OPTION
    card = session.current_card
    if session.mode != Mode.QUIZ or card is None or not card.options or session.state.revealed:
        return None
    index = (command.option_number or 0) - 1
    if not 0 <= index < len(card.options):
        return None
    return session.select_answer(card.options[index])
