"""
Risoluzione delle colonne: indirizzamento posizionale (indici 0..n-1) oppure
per nome (valori della prima riga fisica). La modalità viene decisa una sola
volta, al primo parse, e non cambia più per quella tabella.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .errors import InvalidArgument, MalformedRow


@dataclass(frozen=True, slots=True)
class Positional:
    index: int


@dataclass(frozen=True, slots=True)
class Named:
    name: str


ColumnKey = Union[Positional, Named]


def column_key(value: Any) -> ColumnKey:
    """Converte un int/str (o una ColumnKey) nella variante corrispondente."""
    if isinstance(value, (Positional, Named)):
        return value
    if isinstance(value, bool):
        raise InvalidArgument(f"Chiave di colonna non valida: {value!r}")
    if isinstance(value, int):
        return Positional(value)
    if isinstance(value, str):
        return Named(value)
    raise InvalidArgument(f"Chiave di colonna non valida: {value!r}")


class ColumnMode(Enum):
    POSITIONAL = "positional"
    NAMED = "named"


def is_blank(fields: Sequence[str]) -> bool:
    """Riga fisica vuota: nessun campo oppure un solo campo vuoto."""
    return len(fields) == 0 or (len(fields) == 1 and fields[0] == "")


@dataclass(frozen=True, slots=True)
class Columns:
    mode: ColumnMode
    keys: Tuple[Any, ...]

    @property
    def named(self) -> bool:
        return self.mode is ColumnMode.NAMED

    def __len__(self) -> int:
        return len(self.keys)

    def bind(self, key: ColumnKey) -> ColumnKey:
        """Traduce un indice nel nome corrispondente quando la modalità è per nome."""
        if not self.named:
            if isinstance(key, Named):
                raise InvalidArgument(
                    f"Colonna {key.name!r} indirizzata per nome, ma fetch_columns() non è attivo"
                )
            return key
        if isinstance(key, Positional):
            try:
                return Named(self.keys[key.index])
            except IndexError:
                raise InvalidArgument(
                    f"Indice di colonna {key.index} fuori intervallo ({len(self.keys)} colonne)"
                ) from None
        return key

    def build_row(
        self, fields: List[str], line: Optional[int] = None, strict: bool = False
    ) -> Union[List[str], Dict[str, str]]:
        """Costruisce una riga (lista o dict) a partire dai campi grezzi."""
        if self.named:
            if len(fields) != len(self.keys):
                if is_blank(fields):
                    return {name: "" for name in self.keys}
                raise MalformedRow(
                    f"Attesi {len(self.keys)} campi, trovati {len(fields)}", line=line
                )
            return dict(zip(self.keys, fields))

        if strict and len(fields) != len(self.keys) and not is_blank(fields):
            raise MalformedRow(
                f"Attesi {len(self.keys)} campi, trovati {len(fields)}", line=line
            )
        return list(fields)


def resolve_columns(
    first_row: Optional[List[str]],
    fetch_names: bool,
    header_transform: Optional[Callable[[List[Any]], List[Any]]] = None,
) -> Tuple[Columns, bool]:
    """
    Decide le colonne a partire dalla prima riga fisica.

    Ritorna (columns, consumed): consumed è True quando la prima riga è stata
    usata come header e quindi non va riletta come dato; altrimenti il chiamante
    deve riavvolgere la sorgente.
    """
    if first_row is None:
        mode = ColumnMode.NAMED if fetch_names else ColumnMode.POSITIONAL
        return Columns(mode, ()), False

    if not fetch_names:
        return Columns(ColumnMode.POSITIONAL, tuple(range(len(first_row)))), False

    names = list(first_row)
    if header_transform is not None:
        names = header_transform(names)

    duplicates = sorted({str(n) for n in names if names.count(n) > 1})
    if duplicates:
        raise MalformedRow(f"Nomi di colonna duplicati nell'header: {', '.join(duplicates)}", line=1)

    return Columns(ColumnMode.NAMED, tuple(names)), True
