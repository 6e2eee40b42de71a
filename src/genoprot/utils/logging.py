"""Logging setup for genoprot.

Everything logs under the ``genoprot`` namespace; tools and flow components
use children such as ``genoprot.Pipeline`` or ``genoprot.external.runner``.
"""

from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Alignment and variant calling logs grow quickly on large runs
DEFAULT_MAX_BYTES = 20 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 3

APP_LOGGER_NAME = "genoprot"


def resolve_level(level: Union[int, str, None], verbose: int = 0) -> int:
    """Turn a config level name and a ``-v`` count into a logging level.

    ``-v`` means INFO and ``-vv`` DEBUG, both taking precedence over *level*.
    Unknown names fall back to WARNING.
    """
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level or "WARNING").upper())
    return value if isinstance(value, int) else logging.WARNING


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> None:
    """Configure the ``genoprot`` logger.

    Args:
        level: Console level
        log_file: Optional rotating log file, always written at DEBUG
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep

    The root logger stays at WARNING so third-party libraries stay quiet.
    Calling this again replaces the previous handlers.
    """
    logging.getLogger().setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    app_logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        except OSError as e:
            warnings.warn(f"Cannot write log file {log_file}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            app_logger.addHandler(file_handler)
            app_logger.setLevel(logging.DEBUG)

    app_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(APP_LOGGER_NAME).getChild(name)


class LogTemplates:
    """Message templates shared by the flow controller, the gate and the steps.

        logger.info(LogTemplates.STEP_START.format(step_name="align_reads", step_number=4, total=9))
    """

    # Flow steps
    STEP_START = "Starting step: {step_name} (#{step_number}/{total})"
    STEP_SUCCESS = "Completed step: {step_name} in {duration:.1f}s"
    STEP_SKIPPED = "Skipping step: {step_name} - {reason}"

    # Stage gate
    STAGE_CACHED = "Skipping stage {stage}: all {count} expected artifact(s) present"
    STAGE_RUN = "Running stage {stage}"
    STAGE_MISSING_INPUT = "{stage} cannot start, missing input: {paths}"

    # Strandedness
    STRANDEDNESS_EXPLICIT = "{sample}: strandedness {strandedness} ({state})"
    STRANDEDNESS_INFERRED = (
        "{sample}: inferred strandedness {strandedness} "
        "(forward {forward:.3f}, reverse {reverse:.3f})"
    )

    # Tables and annotation files
    FILE_LOADED = "Loaded {count:,} records from {path}"
    FILTERING_STATS = "Filtered: {kept:,} kept, {removed:,} removed"
