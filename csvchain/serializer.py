"""
Serializzazione delle righe in testo delimitato o JSON.

Regola di quoting: un campo viene racchiuso tra quote, con ogni quote interna
raddoppiata, se e solo se contiene il delimitatore, la quote o uno spazio
bianco. Ogni carattere di escape viene raddoppiato, così il reader lo
ripristina tale e quale.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .format import DEFAULT_FORMAT, Format


def _to_text(value: Any) -> str:
    return "" if value is None else str(value)


def _needs_quotes_re(fmt: Format) -> re.Pattern:
    return re.compile(f"(?:{re.escape(fmt.delimiter)}|{re.escape(fmt.quote)}|\\s)")


def format_row(fields: Iterable[Any], fmt: Format = DEFAULT_FORMAT) -> str:
    pattern = _needs_quotes_re(fmt)
    out = []
    for value in fields:
        text = _to_text(value).replace(fmt.escape, fmt.escape * 2)
        if pattern.search(text):
            text = fmt.quote + text.replace(fmt.quote, fmt.quote * 2) + fmt.quote
        out.append(text)
    return fmt.delimiter.join(out)


def format_field(value: Any, fmt: Format = DEFAULT_FORMAT) -> str:
    return format_row([value], fmt)


def _row_values(row: Any, columns: Optional[Sequence[Any]]) -> List[Any]:
    if isinstance(row, Mapping):
        if columns is not None:
            return [row.get(name) for name in columns]
        return list(row.values())
    if isinstance(row, (list, tuple)):
        return list(row)
    return [row]


def _format_line(values: List[Any], fmt: Format) -> str:
    line = format_row(values, fmt)
    # un solo campo vuoto scritto nudo verrebbe riletto come riga senza campi
    if line == "" and len(values) == 1:
        return fmt.quote * 2
    return line


def rows_to_delimited(
    rows: Iterable[Any],
    columns: Optional[Sequence[Any]] = None,
    fmt: Format = DEFAULT_FORMAT,
    line_separator: str = "\n",
) -> str:
    """
    Righe in testo delimitato, ogni riga terminata da line_separator.
    Se columns è presente diventa la prima riga e fissa l'ordine dei campi
    delle righe con nome.
    """
    lines = []
    if columns is not None:
        lines.append(_format_line(list(columns), fmt))
    lines.extend(_format_line(_row_values(row, columns), fmt) for row in rows)
    return "".join(line + line_separator for line in lines)


def rows_to_json(rows: Iterable[Any]) -> str:
    """Array JSON compatto: oggetti per righe con nome, array per righe posizionali."""
    return json.dumps(list(rows), separators=(",", ":"), ensure_ascii=False, default=str)
