from __future__ import annotations

import logging
import os
from datetime import date
from logging import Logger
from pathlib import Path
from typing import Optional, Union

LOG_DIR_ENV = "CSVCHAIN_LOG_DIR"
LOG_LEVEL_ENV = "CSVCHAIN_LOG_LEVEL"

BASE_LOGGER = "csvchain"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s"


def _parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Livello di log sconosciuto: {level!r}")
    return value


class LogManager:
    """
    Logger 'csvchain.<componente>' condivisi da tutta la libreria.

    La prima istanza configura il logger base: un file giornaliero
    'csvchain_YYYYMMDD.log' (livello DEBUG) in logs/ accanto al pacchetto o in
    $CSVCHAIN_LOG_DIR, e la console su stderr al livello di $CSVCHAIN_LOG_LEVEL
    (default WARNING). configure() permette di rifare la configurazione.
    """

    _configured: bool = False
    _logfile: Optional[Path] = None
    _file_handler: Optional[logging.FileHandler] = None
    _console_handler: Optional[logging.StreamHandler] = None

    def __init__(self, component: str = "app", level: int = logging.DEBUG) -> None:
        self.component = component.strip() or "app"
        self.level = level
        if not LogManager._configured:
            LogManager.configure()

    @staticmethod
    def default_logs_dir() -> Path:
        override = os.environ.get(LOG_DIR_ENV)
        if override:
            return Path(override)
        return Path(__file__).resolve().parents[1] / "logs"

    @classmethod
    def configure(
        cls,
        logs_dir: Optional[Path] = None,
        console_level: Optional[Union[int, str]] = None,
    ) -> Path:
        """Installa (o sostituisce) gli handler del logger base; ritorna il file di log."""
        cls.reset()

        logs_dir = Path(logs_dir) if logs_dir is not None else cls.default_logs_dir()
        logs_dir.mkdir(parents=True, exist_ok=True)
        cls._logfile = logs_dir / f"csvchain_{date.today():%Y%m%d}.log"

        if console_level is None:
            console_level = os.environ.get(LOG_LEVEL_ENV, "WARNING")

        base = logging.getLogger(BASE_LOGGER)
        base.setLevel(logging.DEBUG)
        base.propagate = False

        cls._file_handler = logging.FileHandler(cls._logfile, encoding="utf-8")
        cls._file_handler.setLevel(logging.DEBUG)
        cls._file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        base.addHandler(cls._file_handler)

        cls._console_handler = logging.StreamHandler()
        cls._console_handler.setLevel(_parse_level(console_level))
        cls._console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        base.addHandler(cls._console_handler)

        cls._configured = True
        base.debug("Log su %s", cls._logfile)
        return cls._logfile

    @classmethod
    def reset(cls) -> None:
        """Rimuove e chiude gli handler installati da configure()."""
        base = logging.getLogger(BASE_LOGGER)
        for handler in (cls._file_handler, cls._console_handler):
            if handler is not None:
                base.removeHandler(handler)
                handler.close()
        cls._file_handler = None
        cls._console_handler = None
        cls._configured = False

    @classmethod
    def set_console_level(cls, level: Union[int, str]) -> None:
        """Cambia il livello della console (es. 'DEBUG' per --log-level debug)."""
        value = _parse_level(level)
        if not cls._configured:
            cls.configure()
        cls._console_handler.setLevel(value)

    def get_logger(self, level: Optional[int] = None) -> Logger:
        logger = logging.getLogger(BASE_LOGGER).getChild(self.component)
        logger.setLevel(level if level is not None else self.level)
        return logger

    @classmethod
    def logfile_path(cls) -> Optional[Path]:
        return cls._logfile
