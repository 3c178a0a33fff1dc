"""
Basic configuration

- Data directory resolved from one of two strategies (editor / packaged)
- HOSPITAL_DATA_DIR overrides both strategies
- Values read from the environment, .env file loaded from the project root
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Get the project root directory (parent of hospital_data/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / '.env')

EDITOR_MODE = "editor"
PACKAGED_MODE = "packaged"
RUNTIME_MODES = (EDITOR_MODE, PACKAGED_MODE)

# File names inside the data directory (kept for compatibility with existing data)
PATIENTS_FILE = "les_patients.json"
SUPERVISORS_FILE = "les_superviseur.json"
SESSIONS_FILE = "sessions.json"
ENVIRONMENTS_FILE = "environnements.json"

DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def is_frozen() -> bool:
    """True when running from a packaged (frozen) build"""
    return bool(getattr(sys, "frozen", False))


def get_runtime_mode() -> str:
    """
    Get the path-resolution mode from HOSPITAL_RUNTIME_MODE

    Falls back to 'packaged' for frozen builds and 'editor' otherwise.
    Unknown values fall back the same way.
    """
    mode = os.getenv("HOSPITAL_RUNTIME_MODE", "").strip().lower()
    if mode in RUNTIME_MODES:
        return mode
    return PACKAGED_MODE if is_frozen() else EDITOR_MODE


def editor_data_dir() -> Path:
    """Project-relative data folder used during development"""
    return PROJECT_ROOT / "data"


def packaged_data_dir() -> Path:
    """Application-relative streaming-assets folder used by packaged builds"""
    if is_frozen():
        app_root = Path(sys.executable).resolve().parent
    else:
        app_root = Path.cwd()
    return app_root / "streaming_assets" / "hospital_data"


def resolve_data_dir(mode: Optional[str] = None) -> Path:
    """
    Resolve the base directory holding the JSON files

    Args:
        mode: 'editor' or 'packaged'; defaults to get_runtime_mode()

    Returns:
        HOSPITAL_DATA_DIR if set, otherwise the directory for the selected mode
    """
    override = os.getenv("HOSPITAL_DATA_DIR")
    if override:
        return Path(override).expanduser()

    mode = mode or get_runtime_mode()
    if mode not in RUNTIME_MODES:
        raise ValueError(f"Unknown runtime mode '{mode}', expected one of {RUNTIME_MODES}")
    if mode == PACKAGED_MODE:
        return packaged_data_dir()
    return editor_data_dir()


def configure_logging(level: Optional[str] = None):
    """
    Install a basic stream handler for command-line use

    The package itself never configures logging on import.
    """
    level_name = (level or os.getenv("HOSPITAL_LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
