from __future__ import annotations

import csv
from pathlib import Path
from typing import IO, Iterator, List, Optional

from .errors import MalformedRow
from .format import DEFAULT_FORMAT, Format
from .logger import LogManager

log = LogManager("reader").get_logger()


class RowReader:
    """
    Sorgente di righe lazy e riavvolgibile su un file delimitato.

    Ogni riga è la lista dei campi grezzi (stringhe). Una riga vuota nel file
    produce [] e viene lasciata al sweeper.
    """

    def __init__(self, path: str | Path, fmt: Format = DEFAULT_FORMAT, encoding: str = "utf-8"):
        self.path = Path(path)
        self.format = fmt
        self.encoding = encoding
        self._fh: Optional[IO[str]] = None
        self._reader = None

    def __enter__(self) -> "RowReader":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> None:
        if self._fh is not None:
            return
        self._fh = open(self.path, "r", encoding=self.encoding, newline="")
        self._reader = csv.reader(self._fh, **self.format.reader_kwargs())
        log.debug("Aperto %s (delimiter=%r)", self.path, self.format.delimiter)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
        self._fh = None
        self._reader = None

    def rewind(self) -> None:
        """Torna all'inizio del file: la prossima riga letta è la prima."""
        if self._fh is None:
            self.open()
            return
        self._fh.seek(0)
        self._reader = csv.reader(self._fh, **self.format.reader_kwargs())

    @property
    def line_num(self) -> int:
        return self._reader.line_num if self._reader is not None else 0

    def next_row(self) -> Optional[List[str]]:
        """Legge la prossima riga, None a fine file."""
        if self._reader is None:
            self.open()
        try:
            return next(self._reader)
        except StopIteration:
            return None
        except csv.Error as exc:
            raise MalformedRow(f"{self.path.name}: {exc}", line=self._reader.line_num) from exc

    def __iter__(self) -> Iterator[List[str]]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row
