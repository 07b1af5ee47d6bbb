"""
Application constants, logging setup, configuration loading and resource paths.
"""
import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from version import __version__, WEBSITE_URL

# --- Configuration Constants ---
APP_NAME = "Voice Notes"
APP_VERSION = __version__
APP_URL = f"{WEBSITE_URL}/app"
ALLOWED_DOMAIN = "voicenotes.com"
DEFAULT_AUDIO_POLL_INTERVAL_MS = 2000


def _default_app_support_dir() -> Path:
    """Return the per-user data directory for this platform."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "VoiceNotesDesktop"
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "VoiceNotesDesktop"
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    base_dir = Path(xdg_config) if xdg_config else Path.home() / ".config"
    return base_dir / "voicenotes-desktop"


APP_SUPPORT_DIR = _default_app_support_dir()
CONFIG_PATH = APP_SUPPORT_DIR / "config.json"
LOG_DIR = APP_SUPPORT_DIR / ".logs"
PROFILE_DIR = APP_SUPPORT_DIR / "Session"

# --- Logging Setup ---
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "NONE": None,  # Disables logging entirely
}

# Create loggers: one for the GUI shell, one shared by the core modules
logger = logging.getLogger("VoiceNotes")
core_logger = logging.getLogger("voicenotes_core")

# Track current log file path (set by setup_logging)
current_log_file_path: Optional[Path] = None

def setup_logging(config: Optional[Dict] = None):
    """Configure logging based on config file settings."""
    global current_log_file_path

    log_cfg = config.get("logging", {}) if config else {}
    if not isinstance(log_cfg, dict):
        log_cfg = {}
    log_level_str = str(log_cfg.get("level", "INFO")).upper()
    log_level = LOG_LEVELS.get(log_level_str, logging.INFO)
    log_to_file = log_cfg.get("log_to_file", True)
    log_file_name = log_cfg.get("log_file_name", "voicenotes.log")

    # Clear existing handlers
    logger.handlers.clear()
    core_logger.handlers.clear()

    # If logging is disabled (NONE), set to highest level and skip handlers
    if log_level is None:
        logger.setLevel(logging.CRITICAL + 10)
        core_logger.setLevel(logging.CRITICAL + 10)
        current_log_file_path = None
        return

    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    core_logger.addHandler(console_handler)

    # File handler (rotating: 2 MB max, keep 3 backups)
    if log_to_file:
        try:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            current_log_file_path = LOG_DIR / log_file_name
            file_handler = logging.handlers.RotatingFileHandler(
                current_log_file_path,
                maxBytes=2 * 1024 * 1024,  # 2 MB
                backupCount=3,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            core_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Failed to create log file: {e}")
            current_log_file_path = None
    else:
        current_log_file_path = None

    # Handlers are attached here, so records must not bubble up to the
    # basicConfig root handler as well.
    logger.propagate = False
    core_logger.propagate = False
    logger.setLevel(log_level)
    core_logger.setLevel(log_level)

# Initial basic setup (will be reconfigured after config is loaded)
logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
logger.setLevel(logging.INFO)


def load_config(path: Path = CONFIG_PATH) -> Dict[str, Any]:
    """Read the optional JSON configuration file.

    A missing, unreadable or malformed file yields an empty dict so every
    caller falls back to its built-in defaults.
    """
    if not path.exists():
        logger.info(f"Config: no configuration file at {path}, using defaults")
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Config: could not load {path}, using defaults: {e}")
        return {}
    if not isinstance(config, dict):
        logger.warning(f"Config: {path} does not contain a JSON object, using defaults")
        return {}
    logger.info(f"Config: loaded from {path}")
    return config


def resource_path(relative_path: str) -> Path:
    """Get absolute path to resource, works for dev and for frozen bundles."""
    if hasattr(sys, '_MEIPASS'):
        return Path(sys._MEIPASS) / relative_path
    elif getattr(sys, 'frozen', False):
        base_path = Path(sys.executable).parent.parent / 'Resources'
    else:
        base_path = Path(__file__).parent.parent
    return base_path / relative_path
