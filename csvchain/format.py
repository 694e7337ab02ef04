from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .errors import InvalidArgument

DEFAULT_DELIMITER = ","
DEFAULT_QUOTE = '"'
DEFAULT_ESCAPE = "\\"


@dataclass(frozen=True, slots=True)
class Format:
    """
    Terna delimitatore / quote / escape condivisa da reader e serializer.

    L'escape vale anche fuori dai campi quotati (comportamento del modulo csv),
    per questo il serializer raddoppia ogni escape presente nei valori.
    """

    delimiter: str = DEFAULT_DELIMITER
    quote: str = DEFAULT_QUOTE
    escape: str = DEFAULT_ESCAPE

    def __post_init__(self) -> None:
        for name in ("delimiter", "quote", "escape"):
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1:
                raise InvalidArgument(f"{name} deve essere un singolo carattere, trovato {value!r}")
            if value in "\r\n":
                raise InvalidArgument(f"{name} non può essere un fine riga")
        if len({self.delimiter, self.quote, self.escape}) != 3:
            raise InvalidArgument(
                "delimiter, quote ed escape devono essere caratteri distinti: "
                f"{self.delimiter!r}, {self.quote!r}, {self.escape!r}"
            )

    def reader_kwargs(self) -> Dict[str, object]:
        """Parametri per csv.reader coerenti con il quoting del serializer."""
        return {
            "delimiter": self.delimiter,
            "quotechar": self.quote,
            "escapechar": self.escape,
            "doublequote": True,
            "strict": False,
        }

    def to_dict(self) -> Dict[str, str]:
        return {"delimiter": self.delimiter, "quote": self.quote, "escape": self.escape}


DEFAULT_FORMAT = Format()
