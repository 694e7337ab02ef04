"""Configurazione pytest e fixtures condivise."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable

# I log dei test non devono finire nella root del progetto
os.environ.setdefault("CSVCHAIN_LOG_DIR", tempfile.mkdtemp(prefix="csvchain_test_logs_"))

import pytest

from csvchain.cache import default_cache


@pytest.fixture(autouse=True)
def clean_default_cache():
    """Svuota la cache globale delle istanze prima e dopo ogni test."""
    default_cache.clear()
    yield
    default_cache.clear()


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Scrive un CSV temporaneo e ne restituisce il path."""

    def _write(content: str, name: str = "data.csv") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8", newline="")
        return path

    return _write


@pytest.fixture
def hits_csv(write_csv) -> Path:
    """CSV con header Name,Hits."""
    return write_csv("Name,Hits\nFoo,10\nBar,20\n", "hits.csv")


@pytest.fixture
def sparse_csv(write_csv) -> Path:
    """CSV senza header con una riga di soli delimitatori."""
    return write_csv("a,b\n1,2\n,\n3,4\n", "sparse.csv")
