from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from .config import include_paths_from_env
from .logger import LogManager

log = LogManager("paths").get_logger()


def resolve_path(
    name: str | os.PathLike,
    search_include_paths: bool = False,
    include_paths: Optional[Iterable[str]] = None,
) -> Optional[Path]:
    """
    Risolve un nome di file in un path assoluto canonico (symlink seguiti).

    Se il file non esiste, il nome è relativo e search_include_paths è attivo,
    cerca nelle directory indicate (o in $CSVCHAIN_INCLUDE_PATH): vince la
    prima che contiene il file. Ritorna None se il file non è leggibile.
    """
    candidate = Path(name)

    if not candidate.exists() and search_include_paths and not candidate.is_absolute():
        dirs = list(include_paths) if include_paths is not None else include_paths_from_env()
        for directory in dirs:
            found = Path(directory) / candidate
            if found.exists():
                log.debug("'%s' trovato in %s", name, directory)
                candidate = found
                break

    if not candidate.is_file() or not os.access(candidate, os.R_OK):
        return None
    return candidate.resolve()
