"""
Catena di filtri applicata alle righe durante il parsing.

Tre varianti di filtro:
- ROW: riceve l'intera riga e ne restituisce una nuova;
- COLUMN: riceve il valore di una colonna e ne restituisce il sostituto;
- HEADER: riceve la lista dei nomi di colonna letti dalla prima riga.

I filtri sono applicati in serie nell'ordine di registrazione: l'output di un
filtro è l'input del successivo sulla stessa riga/colonna.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .columns import ColumnKey, Columns, Positional, column_key
from .errors import InvalidArgument, MalformedRow
from .logger import LogManager

log = LogManager("filters").get_logger()


class FilterKind(Enum):
    ROW = "row"
    COLUMN = "column"
    HEADER = "header"


@dataclass(slots=True)
class Filter:
    func: Callable[..., Any]
    kind: FilterKind = FilterKind.ROW
    column: Optional[ColumnKey] = None
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def __call__(self, value: Any) -> Any:
        return self.func(value, *self.args, **self.kwargs)

    def describe(self) -> str:
        name = getattr(self.func, "__name__", type(self.func).__name__)
        if self.kind is FilterKind.COLUMN:
            return f"{name} -> {self.column}"
        return f"{name} -> {self.kind.value}"


def _cell_key(key: ColumnKey) -> Any:
    return key.index if isinstance(key, Positional) else key.name


def _check_callable(func: Any) -> None:
    if not callable(func):
        raise InvalidArgument(f"Il filtro deve essere invocabile, trovato {type(func).__name__}")


class FilterChain:
    def __init__(self) -> None:
        self._filters: List[Filter] = []
        self._columns: Optional[Columns] = None
        # chiavi originali dei filtri colonna, per annullare un bind fallito
        self._unbound: List[Tuple[Filter, ColumnKey]] = []
        # i primi _applied filtri sono già stati applicati alle righe
        self._applied = 0
        self.persistent = False

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self._filters)

    @property
    def pending(self) -> bool:
        """True se ci sono filtri registrati dopo l'ultima applicazione."""
        return len(self._filters) > self._applied

    def register(self, target: Any, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Filter:
        """
        Registra un filtro. target None significa "intera riga", altrimenti è
        la colonna (int posizionale o str per nome).
        """
        _check_callable(func)
        if target is None:
            flt = Filter(func, FilterKind.ROW, None, args, kwargs)
        else:
            key = column_key(target)
            if self._columns is not None:
                key = self._columns.bind(key)
            flt = Filter(func, FilterKind.COLUMN, key, args, kwargs)

        self._filters.append(flt)
        log.debug("Filtro registrato: %s", flt.describe())
        return flt

    def register_header(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Filter:
        _check_callable(func)
        flt = Filter(func, FilterKind.HEADER, None, args, kwargs)
        self._filters.append(flt)
        log.debug("Filtro header registrato: %s", flt.describe())
        return flt

    def bind_columns(self, columns: Columns) -> None:
        """Fissa le colonne e risolve gli indici registrati prima di conoscerle."""
        self._unbound = [(f, f.column) for f in self._filters if f.kind is FilterKind.COLUMN]
        self._columns = columns
        for flt, key in self._unbound:
            flt.column = columns.bind(key)

    def unbind_columns(self) -> None:
        """Annulla bind_columns(): le colonne tornano sconosciute."""
        for flt, key in self._unbound:
            flt.column = key
        self._unbound = []
        self._columns = None

    def _selected(self, new_only: bool) -> List[Filter]:
        return self._filters[self._applied:] if new_only else self._filters

    def has_data_filters(self, new_only: bool = False) -> bool:
        return any(f.kind is not FilterKind.HEADER for f in self._selected(new_only))

    def apply(self, row: Any, blank: bool = False, new_only: bool = False) -> Any:
        """
        Applica in ordine i filtri ROW e COLUMN a una riga di dati.

        blank indica una riga fisica vuota: non ha celle da trasformare, quindi
        i filtri COLUMN la saltano. Con new_only vengono applicati solo i filtri
        registrati dopo l'ultima applicazione.
        """
        if isinstance(row, (list, dict)):
            row = row.copy()

        for flt in self._selected(new_only):
            if flt.kind is FilterKind.ROW:
                row = flt(row)
            elif flt.kind is FilterKind.COLUMN:
                if blank:
                    continue
                key = _cell_key(flt.column)
                try:
                    value = row[key]
                except (IndexError, KeyError):
                    raise MalformedRow(f"La riga non contiene la colonna {key!r}") from None
                row[key] = flt(value)
        return row

    def apply_header(self, names: List[Any]) -> List[Any]:
        """Applica in ordine i filtri HEADER alla lista dei nomi di colonna."""
        for flt in self._filters:
            if flt.kind is FilterKind.HEADER:
                names = list(flt(names))
        return names

    def flush(self) -> None:
        """Svuota la catena, a meno che i filtri non siano persistenti."""
        if self.persistent:
            return
        if self._filters:
            log.debug("Catena svuotata (%d filtri)", len(self._filters))
        self._filters = []
        self._unbound = []
        self._applied = 0

    def applied(self) -> None:
        """Chiude un passaggio di applicazione sulle righe, poi svuota la catena."""
        self._applied = len(self._filters)
        self.flush()

    def set_persistence(self, persistent: bool = True) -> None:
        self.persistent = bool(persistent)
