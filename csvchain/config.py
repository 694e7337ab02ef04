"""
Configurazione di csvchain: costanti, opzioni per tabella e file di opzioni JSON.

Le euristiche (modalità file grande, garbage collection) sono calcolate una
sola volta da TableOptions.for_file() e poi trattate come semplice input.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict, List, Optional

# Soglia in byte oltre la quale le righe vuote vengono rimosse durante il parsing
FLUSH_THRESHOLD = 1_000_000

DEFAULT_ENCODING = "utf-8"
DEFAULT_LINE_SEPARATOR = "\n"

# Variabile d'ambiente con le directory di ricerca, separate da ':'
INCLUDE_PATH_ENV = "CSVCHAIN_INCLUDE_PATH"

# Schema version per compatibilità futura dei file di opzioni
OPTIONS_VERSION = "1.0"


class OptionsError(Exception):
    """Eccezione per errori nella lettura/scrittura dei file di opzioni."""
    pass


@dataclass(slots=True)
class TableOptions:
    large_file_mode: bool = False
    garbage_collect_eagerly: bool = False
    encoding: str = DEFAULT_ENCODING
    strict: bool = False
    line_separator: str = DEFAULT_LINE_SEPARATOR

    @classmethod
    def for_file(
        cls,
        path: str | os.PathLike,
        memory_budget: Optional[int] = None,
        **overrides,
    ) -> "TableOptions":
        """
        Calcola le opzioni consigliate per un file.

        - large_file_mode se la dimensione supera FLUSH_THRESHOLD;
        - garbage_collect_eagerly solo se memory_budget (byte) è noto e
          inferiore al doppio della dimensione del file.
        """
        size = os.path.getsize(path)
        options = cls(
            large_file_mode=size > FLUSH_THRESHOLD,
            garbage_collect_eagerly=memory_budget is not None and memory_budget < size * 2,
        )
        return replace(options, **overrides) if overrides else options

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "TableOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise OptionsError(f"Opzioni sconosciute: {', '.join(unknown)}")
        return cls(**data)


def include_paths_from_env() -> List[str]:
    """Directory di ricerca da $CSVCHAIN_INCLUDE_PATH (vuote ignorate)."""
    raw = os.environ.get(INCLUDE_PATH_ENV, "")
    return [p for p in raw.split(":") if p]


def save_options(path: str | os.PathLike, options: TableOptions) -> None:
    """
    Salva le opzioni in un file JSON versionato.

    Raises:
        OptionsError: Se il salvataggio fallisce
    """
    data = {"version": OPTIONS_VERSION, "options": options.to_dict()}
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise OptionsError(f"Impossibile salvare le opzioni in '{path}': {e}") from e


def load_options(path: str | os.PathLike) -> TableOptions:
    """
    Carica le opzioni da un file JSON scritto da save_options().

    Raises:
        OptionsError: Se il file non esiste o il formato non è valido
    """
    path = Path(path)
    if not path.exists():
        raise OptionsError(f"File di opzioni '{path}' non trovato")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise OptionsError(f"File di opzioni '{path}' non leggibile: {e}") from e

    version = data.get("version", "unknown") if isinstance(data, dict) else "unknown"
    if version != OPTIONS_VERSION:
        raise OptionsError(
            f"Versione opzioni non supportata: {version} (attesa: {OPTIONS_VERSION})"
        )

    options = data.get("options")
    if not isinstance(options, dict):
        raise OptionsError(f"Campo 'options' mancante o non valido in '{path}'")
    return TableOptions.from_dict(options)
