"""
csvchain: carica un file delimitato in memoria, applica una catena ordinata
di filtri a righe o colonne e lo riserializza in CSV o JSON.
"""

from .cache import InstanceCache, default_cache
from .columns import ColumnMode, Named, Positional
from .config import FLUSH_THRESHOLD, TableOptions, load_options, save_options
from .errors import CsvChainError, FileNotReadable, InvalidArgument, MalformedRow, NotWritable
from .filters import Filter, FilterChain, FilterKind
from .format import DEFAULT_FORMAT, Format
from .table import Table

__version__ = "0.3.0"

__all__ = [
    "ColumnMode",
    "CsvChainError",
    "DEFAULT_FORMAT",
    "FLUSH_THRESHOLD",
    "FileNotReadable",
    "Filter",
    "FilterChain",
    "FilterKind",
    "Format",
    "InstanceCache",
    "InvalidArgument",
    "MalformedRow",
    "Named",
    "NotWritable",
    "Positional",
    "Table",
    "TableOptions",
    "default_cache",
    "load_options",
    "save_options",
]
