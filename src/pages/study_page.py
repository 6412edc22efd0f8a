import asyncio
from typing import Optional
from nicegui import ui, events, run

from src.config import CARDS_PER_ROUND, CARDS_SOURCE, RESHUFFLE_DELAY
from src.pages.common import setup_page, create_navbar, theme_toggle
from src.core.actions import command_for_key, dispatch
from src.core.errors import SourceUnavailable
from src.core.locale_manager import T
from src.core.log_manager import logger
from src.services.card_source import load_cards
from src.services.session_service import Feedback, Mode, StudySession

REACTION_KEYS = {
    Feedback.CORRECT: "reaction_correct",
    Feedback.INCORRECT: "reaction_incorrect",
    Feedback.LEARNED: "reaction_learned",
    Feedback.SELECT_ANSWER_FIRST: "reaction_select_first",
}

REACTION_COLORS = {
    Feedback.CORRECT: 'text-green-500',
    Feedback.INCORRECT: 'text-red-500',
    Feedback.LEARNED: 'text-green-500',
}

BAND_COLORS = {
    'good': 'green-600',
    'fair': 'yellow-600',
    'poor': 'red-600',
}

async def attach_source(session: StudySession, location: str) -> bool:
    """
    Reads the card source off the event loop (HTTP and SQLite reads block) and installs it.
    Returns False when the source is unavailable or empty.
    """
    try:
        session.attach_cards(await run.io_bound(load_cards, location))
    except SourceUnavailable as e:
        logger.error(f"Session start failed: {e}")
        return False
    return True

class StudyPageState:
    """Presentation-only state; everything about the round lives in the StudySession."""
    def __init__(self):
        self.reaction: Optional[Feedback] = None
        self.shake: bool = False
        self.error: Optional[str] = None

@ui.page('/')
async def study_page():
    dark = setup_page()
    view = StudyPageState()

    def on_feedback(feedback: Feedback):
        view.reaction = feedback if feedback in REACTION_KEYS else None
        view.shake = feedback == Feedback.SELECT_ANSWER_FIRST
        if feedback == Feedback.RESHUFFLE_IN_PROGRESS:
            ui.notify(T("reshuffle_in_progress"), type='warning')

    session = StudySession(round_size=CARDS_PER_ROUND, on_feedback=on_feedback)

    if not await attach_source(session, CARDS_SOURCE):
        view.error = T("load_error")

    # --- LOGIC CONTROLLERS ---

    def act(operation, *args):
        """Calls a session operation and redraws. The reaction shown is the one this operation emitted."""
        view.reaction = None
        view.shake = False
        operation(*args)
        render.refresh()

    def start(mode: Mode):
        act(session.enter_mode, mode)

    def go_home():
        act(session.go_home)

    async def reshuffle():
        view.reaction = None
        if session.new_round() is not None:
            return
        render.refresh()
        # Cosmetic settling delay; nothing in the session depends on it
        await asyncio.sleep(RESHUFFLE_DELAY)
        session.finish_reshuffle()
        render.refresh()

    def handle_key(e: events.KeyEventArguments):
        if not e.action.keydown or session.mode in (Mode.HOME, Mode.RESULTS):
            return
        command = command_for_key(str(e.key.name))
        if command:
            act(dispatch, session, command)

    ui.keyboard(on_key=handle_key)

    # --- SCREENS ---

    def render_error():
        with ui.column().classes('w-full items-center justify-center min-h-screen gap-4'):
            with ui.card().classes('bg-red-100 border border-red-400 text-red-700 px-4 py-3'):
                ui.label(T("error_title")).classes('font-bold')
                ui.label(view.error)
            ui.button(T("try_again"), icon='refresh', on_click=ui.navigate.reload)

    def render_home():
        with ui.column().classes('w-full items-center justify-center min-h-screen p-4 gap-8'):
            with ui.row().classes('absolute top-4 right-4'):
                theme_toggle(dark)

            ui.label(T("app_title")).classes('text-4xl font-bold text-center')

            with ui.grid(columns='1').classes('w-full max-w-2xl md:grid-cols-2 gap-6'):
                with ui.card().classes('items-center p-8 bg-blue-600 text-white cursor-pointer hover:scale-105 transition-transform')\
                        .on('click', lambda: start(Mode.STUDY)):
                    ui.icon('menu_book', size='4rem')
                    ui.label(T("study_mode")).classes('text-2xl font-semibold')
                    ui.label(T("study_mode_desc")).classes('text-sm opacity-80 text-center')

                with ui.card().classes('items-center p-8 bg-green-600 text-white cursor-pointer hover:scale-105 transition-transform')\
                        .on('click', lambda: start(Mode.QUIZ)):
                    ui.icon('psychology', size='4rem')
                    ui.label(T("quiz_mode")).classes('text-2xl font-semibold')
                    ui.label(T("quiz_mode_desc")).classes('text-sm opacity-80 text-center')

            with ui.column().classes('items-center gap-1 text-sm opacity-70'):
                ui.label(T("round_info", count=session.round_size))
                ui.label(T("keyboard_info"))
                if session.learned_count > 0:
                    ui.label(T("learned_summary", learned=session.learned_count, total=session.round_length))\
                        .classes('font-medium opacity-100')

    def render_results():
        summary = session.summary()
        with ui.column().classes('w-full items-center justify-center min-h-screen p-4'):
            with ui.card().classes('max-w-md w-full p-8'):
                ui.label(T("quiz_results")).classes('text-3xl font-bold text-center w-full mb-4')

                ui.label(T("score_line", score=summary.score, total=summary.round_length)).classes('text-lg')

                ui.label(T("accuracy_line", accuracy=summary.accuracy)).classes('text-lg mt-2')
                ui.linear_progress(value=summary.accuracy / 100, show_value=False)\
                    .props(f'size="10px" color="{BAND_COLORS[summary.band]}" rounded')

                if summary.missed_questions:
                    ui.label(T("questions_to_review")).classes('text-lg font-medium mt-4')
                    with ui.column().classes('pl-2 gap-1'):
                        for question in summary.missed_questions:
                            ui.markdown(f"- {question}").classes('text-sm')

                with ui.row().classes('w-full justify-center mt-6 gap-4'):
                    ui.button(T("home"), icon='home', on_click=go_home)
                    ui.button(T("try_again"), icon='refresh', on_click=reshuffle).props('color=green')

    def render_options():
        card = session.current_card
        selected = session.state.selected_option
        with ui.column().classes('w-full max-w-md gap-2'):
            for number, option in enumerate(card.options, start=1):
                color = 'grey-8'
                if selected == option:
                    color = 'green' if option == card.answer else 'red'
                button = ui.button(on_click=lambda o=option: act(session.select_answer, o))\
                    .props(f'color={color} align=left no-caps').classes('w-full')
                if selected is not None:
                    button.disable()
                with button:
                    with ui.row().classes('items-center gap-3 w-full'):
                        ui.badge(str(number)).props('rounded')
                        ui.markdown(option)
                        if selected == option:
                            ui.icon('check' if option == card.answer else 'close').classes('ml-auto')

    def render_arena():
        s = session.state
        card = session.current_card
        is_study = s.mode == Mode.STUDY

        create_navbar(T("study_mode") if is_study else T("quiz_mode"), dark, on_home=go_home)

        with ui.column().classes('w-full items-center p-4 gap-4'):
            # Progress
            with ui.column().classes('w-full max-w-md gap-1'):
                with ui.row().classes('w-full justify-between text-sm'):
                    ui.label(T("card_position", position=s.current_index + 1, total=session.round_length))
                    if is_study:
                        ui.label(T("learned_progress", learned=session.learned_count, total=session.round_length))
                    else:
                        ui.label(T("score_progress", score=s.score, attempts=s.attempts))
                ui.linear_progress(value=session.progress_fraction(), show_value=False)\
                    .props(f'size="8px" color="{"green-500" if is_study else "blue-500"}" rounded')

            shuffle_btn = ui.button(T("new_set"), icon='shuffle', on_click=reshuffle).props('color=indigo')
            if s.is_reshuffling:
                shuffle_btn.disable()
                ui.spinner(size='lg').classes('my-16')
                return

            # Card
            face = T("answer") if s.revealed else T("question")
            border = 'border-green-400' if is_study else 'border-blue-400'
            with ui.card().classes(f'flashcard w-full max-w-md border-2 {border} items-center justify-center p-6 relative')\
                    .classes('shake' if view.shake else '').on('click', lambda: act(session.reveal)):
                ui.label(face).classes('absolute top-3 left-3 text-xs opacity-70')
                ui.markdown(card.answer if s.revealed else card.question).classes('text-xl font-semibold text-center')
                if not s.revealed:
                    ui.label(T("tap_to_flip")).classes('absolute bottom-3 right-3 text-xs opacity-70')

            if s.mode == Mode.QUIZ and card.has_options:
                render_options()

            if view.reaction:
                color = REACTION_COLORS.get(view.reaction, 'text-yellow-500')
                ui.label(T(REACTION_KEYS[view.reaction])).classes(f'text-lg font-bold {color} celebrate')

            # Controls
            with ui.row().classes('gap-3 justify-center'):
                ui.button(T("previous"), icon='chevron_left', on_click=lambda: act(session.prev_card)).props('flat')
                if is_study:
                    learned_btn = ui.button(T("learned"), icon='check', on_click=lambda: act(session.mark_learned))\
                        .props('color=green')
                    if session.is_learned:
                        learned_btn.disable()
                ui.button(T("next"), on_click=lambda: act(session.next_card))\
                    .props('icon-right=chevron_right color=blue')

            ui.label(T("shortcuts_study") if is_study else T("shortcuts_quiz")).classes('text-xs opacity-70 mt-4')

    @ui.refreshable
    def render():
        with ui.column().classes('w-screen min-h-screen gradient-bg p-0 gap-0'):
            if view.error:
                render_error()
            elif session.mode == Mode.HOME:
                render_home()
            elif session.mode == Mode.RESULTS:
                render_results()
            else:
                render_arena()

    render()
