from __future__ import annotations

from typing import Any, Dict, List, Mapping

from .logger import LogManager

log = LogManager("sweeper").get_logger()


def _is_empty_value(value: Any, trim: bool) -> bool:
    # numeri e booleani sono dati, anche se valgono 0/False
    if value is None:
        return True
    if isinstance(value, str):
        return (value.strip() if trim else value) == ""
    if isinstance(value, (bool, int, float, complex)):
        return False
    if isinstance(value, Mapping):
        return all(_is_empty_value(v, trim) for v in value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return all(_is_empty_value(v, trim) for v in value)
    return not value


def is_empty(row: Any, trim: bool = False) -> bool:
    """
    True se la riga è vuota: nessun campo, oppure tutti i campi vuoti
    (None, stringa vuota, collezione vuota). Con trim=True gli spazi non contano.
    """
    return _is_empty_value(row, trim)


def sweep_rows(rows: Dict[int, Any], trim: bool = True) -> List[int]:
    """Rimuove in place le righe vuote e restituisce gli indici eliminati."""
    removed = [index for index, row in rows.items() if is_empty(row, trim)]
    for index in removed:
        del rows[index]
    if removed:
        log.debug("Rimosse %d righe vuote", len(removed))
    return removed
