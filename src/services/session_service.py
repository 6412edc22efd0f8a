# src/services/session_service.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set
import random

from src.config import DEFAULT_CARDS_PER_ROUND
from src.core.errors import EmptySource
from src.core.log_manager import logger
from src.schemas import Card, RoundSummary
from src.services.round_service import Round, select_round

class Mode(str, Enum):
    HOME = "home"
    STUDY = "study"
    QUIZ = "quiz"
    RESULTS = "results"  # Terminal sub-state of QUIZ

class Feedback(str, Enum):
    """
    Signals emitted by session operations. The first three are feedback events,
    the rest are advisories for operations that were rejected and left the state untouched.
    """
    CORRECT = "correct"
    INCORRECT = "incorrect"
    LEARNED = "learned"

    SELECT_ANSWER_FIRST = "select_answer_first"
    ALREADY_ANSWERED = "already_answered"
    INVALID_OPTION = "invalid_option"
    WRONG_MODE = "wrong_mode"
    RESHUFFLE_IN_PROGRESS = "reshuffle_in_progress"
    NO_ROUND = "no_round"

    @property
    def is_advisory(self) -> bool:
        return self not in (Feedback.CORRECT, Feedback.INCORRECT, Feedback.LEARNED)

def accuracy_band(accuracy: int) -> str:
    if accuracy > 80:
        return "good"
    if accuracy > 50:
        return "fair"
    return "poor"

@dataclass
class SessionState:
    """All mutable state of one study/quiz session."""
    mode: Mode = Mode.HOME
    round: Round = ()
    current_index: int = 0
    revealed: bool = False
    selected_option: Optional[str] = None
    learned_indices: Set[int] = field(default_factory=set)
    missed_indices: List[int] = field(default_factory=list)
    score: int = 0
    attempts: int = 0
    is_reshuffling: bool = False

class StudySession:
    """
    The session state machine. Every operation is a synchronous, single-step transition;
    rejected operations never raise, they return an advisory `Feedback` and change nothing.
    """

    def __init__(
        self,
        round_size: int = DEFAULT_CARDS_PER_ROUND,
        rng: Optional[random.Random] = None,
        on_feedback: Optional[Callable[[Feedback], None]] = None,
    ):
        self.round_size = round_size
        self.rng = rng
        self.on_feedback = on_feedback
        self.all_cards: Sequence[Card] = ()
        self.state = SessionState()

    # --- SIGNALS ---

    def _emit(self, feedback: Feedback) -> Feedback:
        if feedback.is_advisory:
            logger.debug(f"Rejected operation in mode '{self.state.mode.value}': {feedback.value}")
        if self.on_feedback:
            self.on_feedback(feedback)
        return feedback

    def _card_guard(self) -> Optional[Feedback]:
        """Common rejection checks for operations on the active card."""
        if self.state.is_reshuffling:
            return self._emit(Feedback.RESHUFFLE_IN_PROGRESS)
        if not self.state.round:
            return self._emit(Feedback.NO_ROUND)
        return None

    # --- ROUND LIFECYCLE ---

    def attach_cards(self, cards: Sequence[Card]):
        """
        Installs the resolved card source and selects the first round. The mode stays as it is.
        """
        if not cards:
            raise EmptySource("The card source contains no cards.")
        self.all_cards = tuple(cards)
        self._install_round()

    def _install_round(self):
        s = self.state
        s.round = select_round(self.all_cards, self.round_size, self.rng)
        s.current_index = 0
        s.revealed = False
        s.selected_option = None
        s.learned_indices = set()
        s.missed_indices = []
        s.score = 0
        s.attempts = 0
        logger.info(f"Installed new round of {len(s.round)} cards (source size {len(self.all_cards)}).")

    def enter_mode(self, target: Mode) -> Optional[Feedback]:
        """Starts a fresh round in Study or Quiz mode. Only valid from Home."""
        if target not in (Mode.STUDY, Mode.QUIZ) or self.state.mode != Mode.HOME:
            return self._emit(Feedback.WRONG_MODE)
        if self.state.is_reshuffling:
            return self._emit(Feedback.RESHUFFLE_IN_PROGRESS)
        if not self.all_cards:
            return self._emit(Feedback.NO_ROUND)

        self._install_round()
        self.state.mode = target
        logger.info(f"Entered {target.value} mode.")
        return None

    def new_round(self) -> Optional[Feedback]:
        """
        Reshuffles: samples a new round with the same resets as `enter_mode`. A finished quiz
        goes back to Quiz. The reshuffle flag stays set until `finish_reshuffle` is called.
        """
        s = self.state
        if s.is_reshuffling:
            return self._emit(Feedback.RESHUFFLE_IN_PROGRESS)
        if s.mode == Mode.HOME:
            return self._emit(Feedback.WRONG_MODE)
        if not self.all_cards:
            return self._emit(Feedback.NO_ROUND)

        s.is_reshuffling = True
        self._install_round()
        if s.mode == Mode.RESULTS:
            s.mode = Mode.QUIZ
        return None

    def finish_reshuffle(self):
        self.state.is_reshuffling = False

    def go_home(self):
        # Counters are kept so the home screen can show the last round's progress
        self.state.mode = Mode.HOME
        self.state.revealed = False
        self.state.selected_option = None

    # --- CARD INTERACTION ---

    def reveal(self) -> Optional[Feedback]:
        """
        Flips the current card. In Quiz mode the answer face stays hidden until an option has
        been chosen, unless the card has no options at all. Hiding is always allowed.
        """
        s = self.state
        if s.mode not in (Mode.STUDY, Mode.QUIZ):
            return self._emit(Feedback.WRONG_MODE)
        rejected = self._card_guard()
        if rejected:
            return rejected

        if not s.revealed and s.mode == Mode.QUIZ:
            if s.selected_option is None and self.current_card.has_options:
                return self._emit(Feedback.SELECT_ANSWER_FIRST)

        s.revealed = not s.revealed
        return None

    def select_answer(self, option: str) -> Feedback:
        """Records the first answer for the current quiz card. Later choices are ignored."""
        s = self.state
        if s.mode != Mode.QUIZ:
            return self._emit(Feedback.WRONG_MODE)
        rejected = self._card_guard()
        if rejected:
            return rejected
        if s.selected_option is not None:
            return self._emit(Feedback.ALREADY_ANSWERED)

        card = self.current_card
        if not card.options or option not in card.options:
            return self._emit(Feedback.INVALID_OPTION)

        s.selected_option = option
        s.attempts += 1
        if option == card.answer:
            s.score += 1
            return self._emit(Feedback.CORRECT)

        s.missed_indices.append(s.current_index)
        return self._emit(Feedback.INCORRECT)

    def mark_learned(self) -> Optional[Feedback]:
        s = self.state
        if s.mode != Mode.STUDY:
            return self._emit(Feedback.WRONG_MODE)
        rejected = self._card_guard()
        if rejected:
            return rejected

        feedback = None
        if s.current_index not in s.learned_indices:
            s.learned_indices.add(s.current_index)
            feedback = self._emit(Feedback.LEARNED)
        self._advance()
        return feedback

    def next_card(self) -> Optional[Feedback]:
        if self.state.mode not in (Mode.STUDY, Mode.QUIZ):
            return self._emit(Feedback.WRONG_MODE)
        rejected = self._card_guard()
        if rejected:
            return rejected
        self._advance()
        return None

    def _advance(self):
        s = self.state
        s.revealed = False
        s.selected_option = None

        if s.current_index < len(s.round) - 1:
            s.current_index += 1
        elif s.mode == Mode.QUIZ:
            s.mode = Mode.RESULTS
            logger.info(f"Quiz finished: score {s.score}/{s.attempts}, accuracy {self.accuracy()}%.")
        else:
            s.current_index = 0

    def prev_card(self) -> Optional[Feedback]:
        s = self.state
        if s.mode not in (Mode.STUDY, Mode.QUIZ):
            return self._emit(Feedback.WRONG_MODE)
        rejected = self._card_guard()
        if rejected:
            return rejected

        s.revealed = False
        s.selected_option = None
        s.current_index = s.current_index - 1 if s.current_index > 0 else len(s.round) - 1
        return None

    # --- QUERIES ---

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def current_card(self) -> Optional[Card]:
        s = self.state
        if not s.round:
            return None
        return s.round[s.current_index]

    @property
    def round_length(self) -> int:
        return len(self.state.round)

    @property
    def learned_count(self) -> int:
        return len(self.state.learned_indices)

    @property
    def is_learned(self) -> bool:
        return self.state.current_index in self.state.learned_indices

    def progress_fraction(self) -> float:
        s = self.state
        if not s.round or s.mode == Mode.HOME:
            return 0.0
        if s.mode == Mode.STUDY:
            return len(s.learned_indices) / len(s.round)
        return (s.current_index + 1) / len(s.round)

    def accuracy(self) -> int:
        """Percentage of correct answers, rounded half up. 0 before any answer."""
        s = self.state
        if s.attempts == 0:
            return 0
        return (200 * s.score + s.attempts) // (2 * s.attempts)

    def missed_cards(self) -> List[Card]:
        seen, out = set(), []
        for index in self.state.missed_indices:
            if index not in seen:
                seen.add(index)
                out.append(self.state.round[index])
        return out

    def summary(self) -> RoundSummary:
        s = self.state
        accuracy = self.accuracy()
        return RoundSummary(
            score=s.score,
            attempts=s.attempts,
            round_length=len(s.round),
            accuracy=accuracy,
            band=accuracy_band(accuracy),
            missed_questions=[card.question for card in self.missed_cards()],
        )
