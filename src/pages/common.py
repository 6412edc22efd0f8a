from typing import Callable, Optional
from nicegui import ui
from src.core.locale_manager import T

def setup_page():
    """Shared page chrome. Returns the dark mode element used by the theme toggle."""
    dark = ui.dark_mode(False)
    ui.add_head_html("<style>html, #c3 { padding: 0 !important;}</style>") # Remove default padding from html and #c3
    return dark

def theme_toggle(dark) -> ui.button:
    """Light/dark switch. The preference lives only as long as the page."""
    def toggle():
        dark.toggle()
        button.props(f"icon={'light_mode' if dark.value else 'dark_mode'}")

    button = ui.button(icon='light_mode' if dark.value else 'dark_mode', on_click=toggle).props('flat round')
    button.tooltip(T("toggle_theme"))
    return button

def create_navbar(title: str, dark, on_home: Optional[Callable] = None):
    with ui.row().classes('w-full bg-black text-white justify-between items-center px-6 py-2 shadow-md'):
        with ui.row().classes('items-center gap-4'):
            if on_home:
                ui.button(T("home"), icon='home', on_click=on_home).props('flat color=white')
            ui.label(T("app_title")).classes('text-xl font-bold tracking-tight')

        ui.label(title).classes('text-lg font-semibold')
        theme_toggle(dark).props('color=white')
