import copy
import random

import pytest

from src.core.errors import EmptySource
from src.schemas import Card
from src.services.session_service import Feedback, Mode, StudySession, accuracy_band


# --- LIFECYCLE ---

def test_new_session_starts_home_without_round():
    session = StudySession()
    assert session.mode == Mode.HOME
    assert session.current_card is None
    assert session.progress_fraction() == 0.0
    assert session.enter_mode(Mode.STUDY) == Feedback.NO_ROUND


def test_attach_cards_installs_first_round(cards):
    session = StudySession(round_size=5, rng=random.Random(3))
    session.attach_cards(cards)
    assert session.mode == Mode.HOME
    assert session.round_length == 5
    assert session.state.current_index == 0


def test_attach_empty_cards_raises():
    with pytest.raises(EmptySource):
        StudySession().attach_cards([])


def test_round_size_larger_than_source(card_maker):
    session = StudySession(round_size=20, rng=random.Random(0))
    session.attach_cards(card_maker(3))
    assert session.round_length == 3


def test_enter_quiz_resets_counters(quiz_abc):
    quiz_abc.select_answer("x")
    quiz_abc.go_home()

    assert quiz_abc.enter_mode(Mode.QUIZ) is None
    s = quiz_abc.state
    assert (s.score, s.attempts, s.current_index) == (0, 0, 0)
    assert s.missed_indices == []
    assert s.selected_option is None
    assert s.revealed is False


def test_enter_mode_only_from_home(session_factory, cards):
    session = session_factory(cards, mode=Mode.STUDY)
    assert session.enter_mode(Mode.QUIZ) == Feedback.WRONG_MODE
    assert session.mode == Mode.STUDY


def test_enter_mode_rejects_non_playable_targets(session_factory, cards):
    session = session_factory(cards)
    assert session.enter_mode(Mode.RESULTS) == Feedback.WRONG_MODE
    assert session.enter_mode(Mode.HOME) == Feedback.WRONG_MODE
    assert session.mode == Mode.HOME


def test_enter_mode_waits_for_reshuffle(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    session.new_round()
    session.go_home()

    assert session.enter_mode(Mode.STUDY) == Feedback.RESHUFFLE_IN_PROGRESS
    assert session.mode == Mode.HOME

    session.finish_reshuffle()
    assert session.enter_mode(Mode.STUDY) is None
    assert session.mode == Mode.STUDY


def test_go_home_keeps_learned_count(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    session.mark_learned()
    session.go_home()
    assert session.mode == Mode.HOME
    assert session.learned_count == 1


# --- REVEAL ---

def test_reveal_toggles_in_study(session_factory, cards):
    session = session_factory(cards, mode=Mode.STUDY)
    assert session.reveal() is None
    assert session.state.revealed is True
    session.reveal()
    assert session.state.revealed is False


def test_reveal_before_select_is_rejected_in_quiz(quiz_abc):
    events = []
    quiz_abc.on_feedback = events.append
    before = copy.deepcopy(quiz_abc.state)

    assert quiz_abc.reveal() == Feedback.SELECT_ANSWER_FIRST
    assert quiz_abc.state == before
    assert quiz_abc.state.revealed is False
    assert events == [Feedback.SELECT_ANSWER_FIRST]


def test_reveal_after_select_is_allowed_in_quiz(quiz_abc):
    quiz_abc.select_answer("a")
    assert quiz_abc.reveal() is None
    assert quiz_abc.state.revealed is True
    # Hiding again is always allowed
    assert quiz_abc.reveal() is None
    assert quiz_abc.state.revealed is False


def test_optionless_quiz_card_reveals_like_study(session_factory):
    free_form = [Card(question="Why?", answer="Because.")]
    session = session_factory(free_form, mode=Mode.QUIZ)
    assert session.reveal() is None
    assert session.state.revealed is True


def test_reveal_in_home_is_rejected(session_factory, cards):
    session = session_factory(cards)
    assert session.reveal() == Feedback.WRONG_MODE
    assert session.state.revealed is False


# --- SELECT ANSWER ---

def test_correct_answer_scores(quiz_abc):
    events = []
    quiz_abc.on_feedback = events.append
    assert quiz_abc.select_answer("a") == Feedback.CORRECT
    assert (quiz_abc.state.score, quiz_abc.state.attempts) == (1, 1)
    assert quiz_abc.state.selected_option == "a"
    assert events == [Feedback.CORRECT]


def test_wrong_answer_records_miss(quiz_abc):
    assert quiz_abc.select_answer("x") == Feedback.INCORRECT
    assert (quiz_abc.state.score, quiz_abc.state.attempts) == (0, 1)
    assert quiz_abc.state.missed_indices == [0]


def test_first_answer_is_final(quiz_abc):
    quiz_abc.select_answer("x")
    assert quiz_abc.select_answer("a") == Feedback.ALREADY_ANSWERED
    s = quiz_abc.state
    assert (s.score, s.attempts, s.selected_option) == (0, 1, "x")
    assert s.missed_indices == [0]


def test_unknown_option_is_rejected(quiz_abc):
    assert quiz_abc.select_answer("not an option") == Feedback.INVALID_OPTION
    assert quiz_abc.state.attempts == 0
    assert quiz_abc.state.selected_option is None


def test_select_answer_only_in_quiz(session_factory, cards):
    session = session_factory(cards, mode=Mode.STUDY)
    assert session.select_answer(cards[0].answer) == Feedback.WRONG_MODE
    assert session.state.attempts == 0


def test_select_on_optionless_card_is_rejected(session_factory):
    session = session_factory([Card(question="Q", answer="A")], mode=Mode.QUIZ)
    assert session.select_answer("A") == Feedback.INVALID_OPTION
    assert session.state.attempts == 0


def test_answer_can_be_given_again_after_card_change(quiz_abc):
    quiz_abc.select_answer("a")
    quiz_abc.next_card()
    quiz_abc.prev_card()
    assert quiz_abc.state.selected_option is None
    assert quiz_abc.select_answer("a") == Feedback.CORRECT
    assert quiz_abc.state.attempts == 2


# --- MARK LEARNED ---

def test_mark_learned_advances_and_signals(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    assert session.mark_learned() == Feedback.LEARNED
    assert session.state.learned_indices == {0}
    assert session.state.current_index == 1


def test_mark_learned_repeat_has_no_duplicate(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    events = []
    session.on_feedback = events.append

    for _ in range(4):
        session.mark_learned()
    assert session.state.current_index == 0  # wrapped

    assert session.mark_learned() is None  # index 0 again
    assert session.learned_count == 4
    assert events.count(Feedback.LEARNED) == 4
    assert session.progress_fraction() == 1.0
    assert session.state.current_index == 1


def test_mark_learned_only_in_study(quiz_abc):
    assert quiz_abc.mark_learned() == Feedback.WRONG_MODE
    assert quiz_abc.state.learned_indices == set()
    assert quiz_abc.state.current_index == 0


def test_is_learned_tracks_current_card(session_factory, cards):
    session = session_factory(cards[:2], mode=Mode.STUDY)
    session.mark_learned()
    assert session.is_learned is False
    session.prev_card()
    assert session.is_learned is True


# --- NAVIGATION ---

def test_next_card_wraps_in_study(session_factory, cards):
    session = session_factory(cards[:3], mode=Mode.STUDY)
    session.next_card()
    session.next_card()
    session.next_card()
    assert session.state.current_index == 0
    assert session.mode == Mode.STUDY


def test_next_card_resets_card_state(quiz_abc):
    quiz_abc.select_answer("a")
    quiz_abc.reveal()
    quiz_abc.next_card()
    assert quiz_abc.state.revealed is False
    assert quiz_abc.state.selected_option is None
    assert quiz_abc.state.current_index == 1


def test_next_card_from_last_quiz_card_finishes_once(quiz_abc):
    quiz_abc.next_card()
    quiz_abc.next_card()
    quiz_abc.next_card()
    assert quiz_abc.mode == Mode.RESULTS

    # Results is terminal for card navigation
    assert quiz_abc.next_card() == Feedback.WRONG_MODE
    assert quiz_abc.prev_card() == Feedback.WRONG_MODE
    assert quiz_abc.mode == Mode.RESULTS
    assert quiz_abc.state.current_index == 2


def test_prev_card_wraps_to_last(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    session.reveal()
    assert session.prev_card() is None
    assert session.state.current_index == 3
    assert session.state.revealed is False


def test_prev_card_in_quiz(quiz_abc):
    quiz_abc.prev_card()
    assert quiz_abc.state.current_index == 2
    assert quiz_abc.mode == Mode.QUIZ


# --- RESHUFFLE ---

def test_new_round_resets_and_blocks_until_finished(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    session.mark_learned()

    assert session.new_round() is None
    assert session.state.is_reshuffling is True
    assert session.state.learned_indices == set()
    assert session.state.current_index == 0

    assert session.new_round() == Feedback.RESHUFFLE_IN_PROGRESS
    assert session.mark_learned() == Feedback.RESHUFFLE_IN_PROGRESS
    assert session.next_card() == Feedback.RESHUFFLE_IN_PROGRESS
    assert session.learned_count == 0

    session.finish_reshuffle()
    assert session.state.is_reshuffling is False
    assert session.new_round() is None


def test_new_round_from_results_retries_quiz(quiz_abc):
    quiz_abc.select_answer("x")
    for _ in range(3):
        quiz_abc.next_card()
    assert quiz_abc.mode == Mode.RESULTS

    assert quiz_abc.new_round() is None
    s = quiz_abc.state
    assert quiz_abc.mode == Mode.QUIZ
    assert (s.score, s.attempts, s.current_index, s.missed_indices) == (0, 0, 0, [])


def test_new_round_from_home_is_rejected(session_factory, cards):
    session = session_factory(cards)
    assert session.new_round() == Feedback.WRONG_MODE
    assert session.state.is_reshuffling is False


def test_new_round_samples_from_full_source(cards):
    session = StudySession(round_size=3, rng=random.Random(11))
    session.attach_cards(cards)
    session.enter_mode(Mode.STUDY)
    seen = set(session.state.round)
    for _ in range(20):
        session.new_round()
        session.finish_reshuffle()
        seen.update(session.state.round)
        assert session.round_length == 3
    assert len(seen) > 3


# --- METRICS ---

def test_quiz_progress_is_position_based(quiz_abc):
    assert quiz_abc.progress_fraction() == pytest.approx(1 / 3)
    quiz_abc.next_card()
    assert quiz_abc.progress_fraction() == pytest.approx(2 / 3)


def test_study_progress_is_learned_based(session_factory, cards):
    session = session_factory(cards[:4], mode=Mode.STUDY)
    assert session.progress_fraction() == 0.0
    session.mark_learned()
    assert session.progress_fraction() == 0.25


def test_accuracy_is_zero_without_attempts(quiz_abc):
    assert quiz_abc.accuracy() == 0


@pytest.mark.parametrize(
    "score,attempts,expected",
    [(0, 1, 0), (1, 1, 100), (2, 3, 67), (1, 3, 33), (1, 8, 13), (1, 2, 50), (5, 7, 71)],
)
def test_accuracy_rounds_half_up(score, attempts, expected):
    session = StudySession()
    session.state.score = score
    session.state.attempts = attempts
    assert session.accuracy() == expected


def test_accuracy_bounds_for_reachable_pairs():
    session = StudySession()
    for attempts in range(0, 30):
        for score in range(0, attempts + 1):
            session.state.score, session.state.attempts = score, attempts
            assert 0 <= session.accuracy() <= 100


def test_quiz_scenario_abc(quiz_abc):
    assert quiz_abc.select_answer("a") == Feedback.CORRECT
    assert (quiz_abc.state.score, quiz_abc.state.attempts) == (1, 1)
    quiz_abc.next_card()

    assert quiz_abc.select_answer("x") == Feedback.INCORRECT
    assert (quiz_abc.state.score, quiz_abc.state.attempts) == (1, 2)
    assert quiz_abc.state.missed_indices == [1]
    quiz_abc.next_card()

    assert quiz_abc.select_answer("c") == Feedback.CORRECT
    assert (quiz_abc.state.score, quiz_abc.state.attempts) == (2, 3)
    quiz_abc.next_card()

    assert quiz_abc.mode == Mode.RESULTS
    assert quiz_abc.accuracy() == 67


def test_summary_lists_missed_questions(quiz_abc):
    quiz_abc.select_answer("x")
    quiz_abc.next_card()
    quiz_abc.select_answer("b")
    quiz_abc.next_card()
    quiz_abc.select_answer("y")
    quiz_abc.next_card()

    summary = quiz_abc.summary()
    assert summary.score == 1
    assert summary.attempts == 3
    assert summary.round_length == 3
    assert summary.accuracy == 33
    assert summary.band == "poor"
    assert summary.missed_questions == ["A?", "C?"]


@pytest.mark.parametrize("accuracy,band", [(100, "good"), (81, "good"), (80, "fair"), (51, "fair"), (50, "poor"), (0, "poor")])
def test_accuracy_band(accuracy, band):
    assert accuracy_band(accuracy) == band


def test_score_never_exceeds_attempts(session_factory, card_maker):
    session = session_factory(card_maker(6), mode=Mode.QUIZ)
    rng = random.Random(5)
    while session.mode == Mode.QUIZ:
        card = session.current_card
        session.select_answer(rng.choice(card.options))
        session.select_answer(card.answer)
        assert 0 <= session.state.score <= session.state.attempts
        session.next_card()
    assert session.state.attempts == 6
