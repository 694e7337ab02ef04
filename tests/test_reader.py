"""Test per csvchain/reader.py e csvchain/columns.py - lettura e risoluzione colonne."""
from __future__ import annotations

from pathlib import Path

import pytest

from csvchain.columns import (
    ColumnMode,
    Columns,
    Named,
    Positional,
    column_key,
    is_blank,
    resolve_columns,
)
from csvchain.errors import InvalidArgument, MalformedRow
from csvchain.format import Format
from csvchain.reader import RowReader


class TestRowReader:
    """Test per RowReader."""

    def test_reads_rows(self, sparse_csv: Path):
        with RowReader(sparse_csv) as reader:
            rows = list(reader)
        assert rows == [["a", "b"], ["1", "2"], ["", ""], ["3", "4"]]

    def test_rewind(self, sparse_csv: Path):
        """Dopo rewind la prima riga viene riletta."""
        with RowReader(sparse_csv) as reader:
            assert reader.next_row() == ["a", "b"]
            reader.rewind()
            assert reader.next_row() == ["a", "b"]
            assert reader.next_row() == ["1", "2"]

    def test_end_of_file(self, write_csv):
        with RowReader(write_csv("x\n")) as reader:
            assert reader.next_row() == ["x"]
            assert reader.next_row() is None

    def test_blank_line(self, write_csv):
        """Una riga vuota produce una lista senza campi."""
        with RowReader(write_csv("1\n\n2\n")) as reader:
            assert list(reader) == [["1"], [], ["2"]]

    def test_escape_character(self, write_csv):
        """L'escape protegge la quote dentro un campo quotato."""
        path = write_csv('"a\\"b",c\n')
        with RowReader(path) as reader:
            assert reader.next_row() == ['a"b', "c"]

    def test_custom_format(self, write_csv):
        path = write_csv("1|'x|y'\n")
        with RowReader(path, Format("|", "'", "\\")) as reader:
            assert reader.next_row() == ["1", "x|y"]

    def test_malformed_quoting_does_not_crash(self, write_csv):
        """Quote non bilanciate: divisione best effort dei campi."""
        path = write_csv('a,b"c,d\n1,2\n')
        with RowReader(path) as reader:
            rows = list(reader)
        assert rows[0][0] == "a"
        assert len(rows) >= 1

    def test_csv_error_becomes_malformed_row(self, write_csv):
        """Gli errori del modulo csv diventano MalformedRow con numero di riga."""
        import csv

        path = write_csv("x," + "y" * 50 + "\n")
        previous = csv.field_size_limit(10)
        try:
            with RowReader(path) as reader:
                with pytest.raises(MalformedRow):
                    reader.next_row()
        finally:
            csv.field_size_limit(previous)


class TestColumnKey:
    """Test per column_key() e Columns.bind()."""

    def test_variants(self):
        assert column_key(2) == Positional(2)
        assert column_key("Hits") == Named("Hits")
        assert column_key(Named("x")) == Named("x")

    def test_invalid_keys(self):
        with pytest.raises(InvalidArgument):
            column_key(True)
        with pytest.raises(InvalidArgument):
            column_key(1.5)

    def test_bind_named(self):
        columns = Columns(ColumnMode.NAMED, ("Name", "Hits"))
        assert columns.bind(Positional(1)) == Named("Hits")
        assert columns.bind(Named("Name")) == Named("Name")
        with pytest.raises(InvalidArgument):
            columns.bind(Positional(5))

    def test_bind_positional(self):
        columns = Columns(ColumnMode.POSITIONAL, (0, 1))
        assert columns.bind(Positional(1)) == Positional(1)
        with pytest.raises(InvalidArgument):
            columns.bind(Named("Hits"))


class TestResolveColumns:
    """Test per resolve_columns()."""

    def test_positional(self):
        columns, consumed = resolve_columns(["a", "b", "c"], fetch_names=False)
        assert columns.mode is ColumnMode.POSITIONAL
        assert columns.keys == (0, 1, 2)
        assert consumed is False

    def test_named(self):
        columns, consumed = resolve_columns(["Name", "Hits"], fetch_names=True)
        assert columns.named
        assert columns.keys == ("Name", "Hits")
        assert consumed is True

    def test_header_transform(self):
        columns, _ = resolve_columns(["Name", "Hits"], True, lambda names: [n.upper() for n in names])
        assert columns.keys == ("NAME", "HITS")

    def test_header_transform_ignored_in_positional_mode(self):
        columns, _ = resolve_columns(["a"], False, lambda names: ["changed"])
        assert columns.keys == (0,)

    def test_duplicate_names(self):
        with pytest.raises(MalformedRow):
            resolve_columns(["a", "a"], fetch_names=True)

    def test_empty_source(self):
        columns, consumed = resolve_columns(None, fetch_names=True)
        assert columns.keys == ()
        assert consumed is False


class TestBuildRow:
    """Test per Columns.build_row()."""

    def test_named_row(self):
        columns = Columns(ColumnMode.NAMED, ("a", "b"))
        assert columns.build_row(["1", "2"]) == {"a": "1", "b": "2"}

    def test_named_blank_row(self):
        columns = Columns(ColumnMode.NAMED, ("a", "b"))
        assert columns.build_row([]) == {"a": "", "b": ""}
        assert columns.build_row([""]) == {"a": "", "b": ""}

    def test_named_mismatch(self):
        columns = Columns(ColumnMode.NAMED, ("a", "b"))
        with pytest.raises(MalformedRow, match="riga 7"):
            columns.build_row(["1"], line=7)

    def test_positional_strict(self):
        columns = Columns(ColumnMode.POSITIONAL, (0, 1))
        assert columns.build_row(["1"]) == ["1"]
        assert columns.build_row([], strict=True) == []
        with pytest.raises(MalformedRow):
            columns.build_row(["1"], strict=True)

    def test_is_blank(self):
        assert is_blank([])
        assert is_blank([""])
        assert not is_blank(["", ""])
        assert not is_blank(["x"])
