# main.py
from pathlib import Path
from nicegui import ui, app
from src.config import APP_PORT, SECRET_KEY
from src.core.locale_manager import T
from src.core.log_manager import logger

# --- PAGE IMPORTS (register routes) ---
import src.pages.study_page

# --- PATH & STYLING SETUP ---
PROJECT_ROOT = Path(__file__).resolve().parent.parent
ASSETS_DIR = PROJECT_ROOT / 'assets'

if ASSETS_DIR.exists():
    app.add_static_files('/assets', ASSETS_DIR)
    ui.add_css(ASSETS_DIR / 'global.css', shared=True)
else:
    logger.error(f"Assets directory not found at: {ASSETS_DIR}")

# --- STARTUP ---
if __name__ in {"__main__", "__mp_main__"}:
    ui.run(title=T("app_title", use_fallback=True), reload=False, port=APP_PORT, storage_secret=SECRET_KEY)
