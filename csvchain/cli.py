"""Command line interface: conversione CSV -> CSV/JSON e creazione bundle."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from .bundler import build_bundle
from .config import OptionsError, load_options
from .errors import CsvChainError
from .format import DEFAULT_FORMAT, Format
from .logger import LogManager
from .table import Table

log = LogManager("cli").get_logger()

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="csvchain CLI (convert, bundle).",
)


@app.callback()
def root(
    log_level: Annotated[
        Optional[str], typer.Option("--log-level", help="Livello dei log su console (es. debug, info).")
    ] = None,
) -> None:
    """csvchain: conversione di file CSV con catene di filtri."""
    if log_level is None:
        return
    try:
        LogManager.set_console_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _strip_row(row: Any) -> Any:
    if isinstance(row, dict):
        return {k: v.strip() if isinstance(v, str) else v for k, v in row.items()}
    if isinstance(row, list):
        return [v.strip() if isinstance(v, str) else v for v in row]
    return row


@app.command()
def convert(
    path: Annotated[Path, typer.Argument(help="File CSV di input.")],
    fetch_columns: Annotated[bool, typer.Option("--fetch-columns", "-c", help="Prima riga come nomi colonna.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Output JSON invece di CSV.")] = False,
    flush_empty: Annotated[bool, typer.Option("--flush-empty", help="Rimuove le righe vuote.")] = False,
    strip: Annotated[bool, typer.Option("--strip", help="Rimuove gli spazi ai bordi di ogni campo.")] = False,
    delimiter: Annotated[str, typer.Option(help="Delimitatore di campo.")] = DEFAULT_FORMAT.delimiter,
    quote: Annotated[str, typer.Option(help="Carattere di quote.")] = DEFAULT_FORMAT.quote,
    escape: Annotated[str, typer.Option(help="Carattere di escape.")] = DEFAULT_FORMAT.escape,
    search_include_paths: Annotated[
        bool, typer.Option("--search-include-paths", help="Cerca anche in $CSVCHAIN_INCLUDE_PATH.")
    ] = False,
    options_file: Annotated[Optional[Path], typer.Option("--options", help="File JSON di opzioni.")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Salva su file invece di stampare.")] = None,
) -> None:
    """Legge un CSV, applica le trasformazioni richieste e lo stampa (o salva)."""
    try:
        options = load_options(options_file) if options_file else None
        table = Table(
            path,
            search_include_paths=search_include_paths,
            options=options,
            fmt=Format(delimiter, quote, escape),
        )
        table.fetch_columns(fetch_columns)
        if strip:
            table.filter(_strip_row)
        if flush_empty:
            table.flush_empty_rows()

        if output is not None:
            if as_json:
                output.write_text(table.to_json(), encoding="utf-8")
            else:
                table.save(output)
            typer.echo(f"Scritto {output} ({len(table)} righe)", err=True)
            return

        typer.echo(table.to_json() if as_json else table.to_csv(), nl=as_json)
    except (CsvChainError, OptionsError) as exc:
        log.error("convert fallito: %s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def bundle(
    data_file: Annotated[Path, typer.Argument(help="File di dati da includere.")],
    script_file: Annotated[Path, typer.Argument(help="Script eseguito dal bundle.")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Path o alias del bundle.")] = None,
) -> None:
    """Crea un bundle .pyz eseguibile con libreria, dati e script."""
    try:
        target = build_bundle(data_file, script_file, output)
    except CsvChainError as exc:
        log.error("bundle fallito: %s", exc)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(str(target))


def main() -> None:
    app()
