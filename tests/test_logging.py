"""Tests for logging setup and progress bar helpers."""

import logging

from rich.logging import RichHandler

from omics_eda import constants
from omics_eda.logger import LOGGER_NAME, setup_logging
from omics_eda.utils.progress import _format_task_desc, get_progress_bar


def test_setup_logging_console_only():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging(tmp_path / "logs", log_filename="run.log")
    try:
        assert len(logger.handlers) == 2
        logger.debug("debug message for the file")
        log_file = tmp_path / "logs" / "run.log"
        assert log_file.exists()
        text = log_file.read_text()
        assert "Logging initialised" in text
        assert "debug message for the file" in text
    finally:
        setup_logging()


def test_setup_logging_replaces_handlers(tmp_path):
    setup_logging(tmp_path, log_filename="a.log")
    logger = setup_logging(console_level=logging.WARNING)
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.WARNING


def test_format_task_desc_pads_and_truncates():
    short = _format_task_desc("Filtering")
    assert short == "[white]" + "Filtering".ljust(constants.DEFAULT_N)
    long = _format_task_desc("x" * 80)
    assert len(long) == len("[white]") + constants.DEFAULT_N
    assert long.endswith("...")


def test_progress_bar_tracks_steps():
    with get_progress_bar(transient=True) as progress:
        task = progress.add_task(_format_task_desc("Steps"), total=3)
        progress.update(task, advance=3)
        assert progress.tasks[0].finished
