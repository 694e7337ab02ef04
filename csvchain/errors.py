"""Eccezioni sollevate da csvchain."""

from __future__ import annotations

from typing import Optional


class CsvChainError(Exception):
    """Eccezione base per tutti gli errori di csvchain."""
    pass


class InvalidArgument(CsvChainError, ValueError):
    """Argomento non valido (callback non invocabile, formato errato, ...)."""
    pass


class NotWritable(InvalidArgument):
    """Il file di destinazione non è scrivibile."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Impossibile scrivere sul file {path!r}")
        self.path = path


class FileNotReadable(CsvChainError, FileNotFoundError):
    """Il file sorgente non esiste o non è leggibile."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path!r} is not readable.")
        self.path = path


class MalformedRow(CsvChainError, ValueError):
    """Riga che non rispetta le colonne dichiarate o il formato delimitato."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        if line is not None:
            message = f"{message} (riga {line})"
        super().__init__(message)
        self.line = line
