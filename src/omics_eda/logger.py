# ===================================== IMPORTS ====================================== #

# Standard Library
from datetime import datetime
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# 3rd‑party (Rich)
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# ==================================== FUNCTIONS ===================================== #

LOGGER_NAME = "omics_eda"

CONSOLE_THEME = Theme({
    "logging.time": "bold white",
    "logging.level.info": "bold white",
    "logging.level.debug": "dim cyan",
    "logging.level.warning": "bold yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "reverse bold bright_white on red",
})


def setup_logging(
    log_dir_path: Optional[Union[str, Path]] = None,
    log_filename: Union[str, None] = None,
    max_file_size: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
    console_level: int = logging.INFO,     # console shows INFO+
    file_level: int = logging.DEBUG        # file keeps DEBUG+
) -> logging.Logger:
    """
    Configure the package logger with:
      • Rich console output
      • Rotating file handler for full DEBUG logs (skipped when no log dir is given)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    # ───────────────────────── FILE HANDLER ───────────────────
    log_file_path = None
    if log_dir_path is not None:
        log_dir_path = Path(log_dir_path)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            log_filename = datetime.now().strftime("%Y-%m-%d_%H%M%S.log")
        log_file_path = log_dir_path / log_filename

        file_handler = RotatingFileHandler(
            filename=log_file_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s:%(filename)s:%(funcName)s(): %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    # ────────────────────── CONSOLE HANDLER ────────────────────
    rich_handler = RichHandler(
        console=Console(theme=CONSOLE_THEME, stderr=True),
        rich_tracebacks=True,
        level=console_level,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        log_time_format="[%X]",
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(rich_handler)

    if log_file_path is not None:
        logger.info("Logging initialised → %s", log_file_path)
    return logger
