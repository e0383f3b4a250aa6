"""
Logging for the Isolation Kernel clustering pipeline.

Library modules log through ``logging.getLogger(__name__)``, so they are
children of the "isokernel" logger. Scripts attach handlers to that logger
once per run with :func:`setup_logger` and detach them with
:func:`close_logger` when the session ends.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


CONSOLE_FORMAT = "%(levelname)-7s %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"


def setup_logger(
    name: str = "isokernel",
    log_file: Optional[Path] = None,
    level: Union[int, str] = logging.INFO,
) -> logging.Logger:
    """
    Attach a console handler and, optionally, a run log file to a logger.

    The console shows short lines. The file keeps timestamps and the
    emitting module. Handlers from a previous call are closed first, so
    repeated runs in one process never write to a stale log file.

    Parameters
    ----------
    name : str
        Logger name. The default covers every library module.
    log_file : Path, optional
        Run log, usually ``<session>/logs/pipeline.log``.
    level : int or str
        Level as a ``logging`` constant or a name such as "DEBUG".

    Returns
    -------
    logging.Logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logger = close_logger(logging.getLogger(name))
    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger


def close_logger(logger: logging.Logger) -> logging.Logger:
    """
    Flush, close and remove every handler of ``logger``.
    """
    for handler in list(logger.handlers):
        handler.flush()
        handler.close()
        logger.removeHandler(handler)
    return logger
