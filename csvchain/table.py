from __future__ import annotations

import gc
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import pandas as pd

from . import paths
from .cache import InstanceCache, default_cache
from .columns import Columns, is_blank, resolve_columns
from .config import TableOptions
from .errors import FileNotReadable, InvalidArgument, NotWritable
from .filters import FilterChain
from .format import DEFAULT_FORMAT, Format
from .logger import LogManager
from .reader import RowReader
from .serializer import rows_to_delimited, rows_to_json
from .sweeper import is_empty, sweep_rows

log = LogManager("table").get_logger()


class Table:
    """
    Tabella in memoria caricata da un file delimitato.

    Le righe sono indicizzate 0..n-1 in ordine di lettura; le righe rimosse
    lasciano un buco (gli indici non vengono mai riassegnati). I filtri
    registrati vengono applicati al parse successivo (o all'output successivo)
    e poi scartati, a meno di persistent_filters().

    Example:
        >>> table = Table("hits.csv").fetch_columns()
        >>> table.filter("Hits", int).to_json()
        '[{"Name":"Foo","Hits":10},{"Name":"Bar","Hits":20}]'
    """

    def __init__(
        self,
        path: str | os.PathLike,
        search_include_paths: bool = False,
        resolve_path: bool = True,
        options: Optional[TableOptions] = None,
        include_paths: Optional[Iterable[str]] = None,
        fmt: Format = DEFAULT_FORMAT,
    ) -> None:
        if resolve_path:
            resolved = paths.resolve_path(path, search_include_paths, include_paths)
            if resolved is None:
                log.error("File non leggibile: %s", path)
                raise FileNotReadable(str(path))
            self.path = resolved
        else:
            self.path = Path(path)

        if options is None:
            options = TableOptions.for_file(self.path) if self.path.is_file() else TableOptions()
        self.options = options
        self.format = fmt

        self._rows: Optional[Dict[int, Any]] = None
        # indici delle righe nate da una riga fisica vuota
        self._blank: Set[int] = set()
        self._columns: Optional[Columns] = None
        self._fetch_column_names = False
        self._chain = FilterChain()
        # letture fisiche del file sorgente
        self.reads = 0

    @classmethod
    def get_instance(
        cls,
        path: str | os.PathLike,
        search_include_paths: bool = False,
        resolve_path: bool = True,
        cache: Optional[InstanceCache] = None,
        **kwargs: Any,
    ) -> "Table":
        """
        Restituisce l'istanza associata al path risolto, creandola alla prima
        richiesta. Le chiamate successive riusano la stessa istanza anche se
        gli argomenti cambiano o il file è stato modificato su disco.
        """
        if resolve_path:
            key = paths.resolve_path(path, search_include_paths, kwargs.get("include_paths"))
            if key is None:
                log.error("File non leggibile: %s", path)
                raise FileNotReadable(str(path))
        else:
            key = Path(os.path.abspath(path))

        if cache is None:
            cache = default_cache
        kwargs.pop("include_paths", None)
        return cache.get_or_create(key, lambda: cls(key, resolve_path=False, **kwargs))

    # ---------- Configurazione ----------
    @property
    def is_parsed(self) -> bool:
        return self._rows is not None

    def fetch_columns(self, fetch: bool = True) -> "Table":
        """Usa la prima riga del file come nomi delle colonne."""
        if self.is_parsed and bool(fetch) != self._columns.named:
            log.warning("fetch_columns(%s) ignorato: colonne già risolte per %s", fetch, self.path.name)
        self._fetch_column_names = bool(fetch)
        return self

    def set_format(self, fmt: Optional[Format] = None, **changes: str) -> "Table":
        """Cambia la terna delimiter/quote/escape; consentito solo prima del parse."""
        if self.is_parsed:
            raise InvalidArgument("Il formato non può cambiare dopo il parse")
        fmt = fmt if fmt is not None else self.format
        self.format = replace(fmt, **changes) if changes else fmt
        return self

    def collect_garbage(self, collect: bool = True) -> "Table":
        self.options.garbage_collect_eagerly = bool(collect)
        return self

    def persistent_filters(self, persistent: bool = True) -> "Table":
        self._chain.set_persistence(persistent)
        return self

    def flush_filters(self) -> "Table":
        self._chain.flush()
        return self

    # ---------- Filtri ----------
    def filter(self, *args: Any, **kwargs: Any) -> "Table":
        """
        Registra un filtro.

        - filter(func, *extra): filtro sull'intera riga;
        - filter(column, func, *extra): filtro su una colonna (int o nome).

        Gli argomenti extra (e le keyword) vengono passati al callable dopo il
        valore. Solleva InvalidArgument se il callable non è invocabile.

        I filtri di riga e di colonna vedono solo le righe di dati: con
        fetch_columns() l'header passa soltanto dai filtri di filter_header().
        Una riga fisica vuota non ha celle, quindi i filtri di colonna la saltano.
        """
        if not args:
            raise InvalidArgument("filter() richiede almeno un callable")

        first = args[0]
        if callable(first):
            self._chain.register(None, first, *args[1:], **kwargs)
        elif len(args) < 2:
            raise InvalidArgument(f"Nessun callable fornito per la colonna {first!r}")
        else:
            self._chain.register(first, args[1], *args[2:], **kwargs)
        return self

    def filter_header(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> "Table":
        """Registra un filtro sulla lista dei nomi di colonna (con fetch_columns)."""
        self._chain.register_header(func, *args, **kwargs)
        return self

    @property
    def filters(self) -> FilterChain:
        return self._chain

    # ---------- Parsing ----------
    def parse(self) -> "Table":
        """
        Legge il file (solo la prima volta) applicando i filtri registrati.

        Su una tabella già letta applica l'intera catena se non è vuota (anche
        i filtri persistenti già applicati), altrimenti non fa nulla (nessuna
        rilettura, nessuna garbage collection).
        """
        if self._rows is None:
            self._load()
        elif len(self._chain):
            self._apply_chain()
        else:
            return self

        self._after_pass()
        return self

    def apply_filters(self) -> "Table":
        return self.parse()

    def _ensure_parsed(self) -> None:
        # gli output applicano solo i filtri nuovi, non ripetono quelli persistenti
        if self._rows is None:
            self.parse()
        elif self._chain.pending:
            self._apply_chain(new_only=True)
            self._after_pass()

    def _after_pass(self) -> None:
        if self.options.garbage_collect_eagerly:
            gc.collect()

    def _load(self) -> None:
        try:
            columns, rows, blank, swept = self._read_rows()
        except OSError as exc:
            self._chain.unbind_columns()
            log.error("Errore in lettura CSV %s: %s", self.path, exc, exc_info=True)
            raise
        except Exception:
            # la tabella resta non letta: le colonne non sono ancora decise
            self._chain.unbind_columns()
            raise

        self._columns = columns
        self._rows = rows
        self._blank = blank
        self._chain.applied()

        log.info(
            "CSV caricato: %s (righe=%d, colonne=%d, modalità=%s, righe vuote rimosse=%d)",
            self.path.name,
            len(rows),
            len(columns),
            columns.mode.value,
            swept,
        )

    def _read_rows(self) -> Tuple[Columns, Dict[int, Any], Set[int], int]:
        rows: Dict[int, Any] = {}
        blank: Set[int] = set()
        inline = self.options.large_file_mode
        swept = 0

        with RowReader(self.path, self.format, self.options.encoding) as reader:
            self.reads += 1
            first = reader.next_row()
            columns, consumed = resolve_columns(
                first, self._fetch_column_names, self._chain.apply_header
            )
            if not consumed:
                reader.rewind()
            self._chain.bind_columns(columns)

            for index, fields in enumerate(reader):
                is_blank_line = is_blank(fields)
                row = columns.build_row(fields, line=reader.line_num, strict=self.options.strict)
                row = self._chain.apply(row, blank=is_blank_line)
                if inline and is_empty(row, trim=True):
                    swept += 1
                    continue
                rows[index] = row
                if is_blank_line:
                    blank.add(index)

        return columns, rows, blank, swept

    def _apply_chain(self, new_only: bool = False) -> None:
        if not self._chain.has_data_filters(new_only):
            self._chain.applied()
            return

        inline = self.options.large_file_mode
        filtered: Dict[int, Any] = {}
        for index, row in self._rows.items():
            row = self._chain.apply(row, blank=index in self._blank, new_only=new_only)
            if inline and is_empty(row, trim=True):
                continue
            filtered[index] = row

        log.debug(
            "Filtri applicati a %d righe (%d rimosse)",
            len(self._rows),
            len(self._rows) - len(filtered),
        )
        self._rows = filtered
        self._blank = {index for index in self._blank if index in filtered}
        self._chain.applied()

    # ---------- Righe vuote ----------
    def flush_empty_rows(self, on_after_filter: Optional[bool] = None) -> "Table":
        """
        Rimuove le righe vuote.

        Con un argomento imposta solo la modalità: True rimuove le righe vuote
        durante il parsing/filtraggio, False le lascia a una chiamata esplicita.
        Senza argomenti esegue subito la rimozione (dopo il parse).
        """
        if on_after_filter is not None:
            self.options.large_file_mode = bool(on_after_filter)
            return self

        self._ensure_parsed()
        for index in sweep_rows(self._rows, trim=True):
            self._blank.discard(index)
        return self

    # ---------- Output ----------
    @property
    def columns(self) -> List[Any]:
        self._ensure_parsed()
        return list(self._columns.keys)

    def to_records(self) -> Dict[int, Any]:
        """Righe per indice originale (i buchi delle righe rimosse restano)."""
        self._ensure_parsed()
        return dict(self._rows)

    def to_json(self) -> str:
        self._ensure_parsed()
        return rows_to_json(self._rows.values())

    def to_csv(self) -> str:
        self._ensure_parsed()
        header = self._columns.keys if self._columns.named else None
        return rows_to_delimited(
            self._rows.values(), header, self.format, self.options.line_separator
        )

    def to_dataframe(self) -> pd.DataFrame:
        """DataFrame con indice = indice di riga originale."""
        self._ensure_parsed()
        columns = list(self._columns.keys) if self._columns.named else None
        return pd.DataFrame(list(self._rows.values()), index=list(self._rows.keys()), columns=columns)

    def save(self, path: Optional[str | os.PathLike] = None) -> "Table":
        """Scrive la tabella come testo delimitato (default: il file sorgente)."""
        target = Path(path) if path else self.path
        if not _is_writable(target):
            log.error("File non scrivibile: %s", target)
            raise NotWritable(str(target))

        text = self.to_csv()
        try:
            with open(target, "w", encoding=self.options.encoding, newline="") as f:
                f.write(text)
        except PermissionError as exc:
            log.error("File non scrivibile: %s", target, exc_info=True)
            raise NotWritable(str(target)) from exc

        log.info("CSV salvato: %s (righe=%d)", target, len(self._rows))
        return self

    def __str__(self) -> str:
        return self.to_csv()

    def __repr__(self) -> str:
        state = f"{len(self._rows)} righe" if self._rows is not None else "non letto"
        return f"<Table {self.path} ({state})>"

    def __iter__(self) -> Iterator[Any]:
        self._ensure_parsed()
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        self._ensure_parsed()
        return len(self._rows)

    def __getitem__(self, index: int) -> Any:
        self._ensure_parsed()
        return self._rows[index]


def _is_writable(target: Path) -> bool:
    if target.exists():
        return target.is_file() and os.access(target, os.W_OK)
    parent = target.parent if str(target.parent) else Path(".")
    return parent.is_dir() and os.access(parent, os.W_OK)
