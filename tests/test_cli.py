"""Test per csvchain/cli.py e csvchain/bundler.py."""
from __future__ import annotations

import json
import logging
import subprocess
import sys
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from csvchain.bundler import DATA_DIR, SCRIPT_MODULE, build_bundle
from csvchain.cli import app
from csvchain.config import TableOptions, save_options
from csvchain.errors import FileNotReadable, NotWritable
from csvchain.logger import LogManager

runner = CliRunner()


class TestConvert:
    """Test per il comando convert."""

    def test_json_with_columns(self, hits_csv: Path):
        result = runner.invoke(app, ["convert", str(hits_csv), "--fetch-columns", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"Name": "Foo", "Hits": "10"},
            {"Name": "Bar", "Hits": "20"},
        ]

    def test_csv_output(self, sparse_csv: Path):
        result = runner.invoke(app, ["convert", str(sparse_csv), "--flush-empty"])
        assert result.exit_code == 0
        assert result.stdout == "a,b\n1,2\n3,4\n"

    def test_strip(self, write_csv):
        path = write_csv("k,v\n a , b \n")
        result = runner.invoke(app, ["convert", str(path), "-c", "--strip", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"k": "a", "v": "b"}]

    def test_custom_delimiter(self, write_csv):
        path = write_csv("a;b\n1;2\n")
        result = runner.invoke(app, ["convert", str(path), "--delimiter", ";", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == [["a", "b"], ["1", "2"]]

    def test_output_file(self, hits_csv: Path, tmp_path: Path):
        target = tmp_path / "out.csv"
        result = runner.invoke(app, ["convert", str(hits_csv), "-c", "-o", str(target)])
        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8") == "Name,Hits\nFoo,10\nBar,20\n"

    def test_options_file(self, hits_csv: Path, tmp_path: Path):
        opts = tmp_path / "opts.json"
        save_options(opts, TableOptions(line_separator="\r\n"))
        target = tmp_path / "out.csv"
        result = runner.invoke(
            app, ["convert", str(hits_csv), "--options", str(opts), "-o", str(target)]
        )
        assert result.exit_code == 0
        assert target.read_bytes() == b"Name,Hits\r\nFoo,10\r\nBar,20\r\n"

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["convert", str(tmp_path / "missing.csv")])
        assert result.exit_code == 1
        assert "error:" in result.output

    def test_invalid_format(self, hits_csv: Path):
        result = runner.invoke(app, ["convert", str(hits_csv), "--delimiter", '"'])
        assert result.exit_code == 1
        assert "error:" in result.output

    def test_malformed_named_row(self, write_csv):
        path = write_csv("a,b\n1,2,3\n")
        result = runner.invoke(app, ["convert", str(path), "-c"])
        assert result.exit_code == 1
        assert "riga 2" in result.output


class TestLogLevel:
    """Test per l'opzione globale --log-level."""

    def test_valid_level(self, hits_csv: Path):
        try:
            result = runner.invoke(app, ["--log-level", "debug", "convert", str(hits_csv), "--json"])
            assert result.exit_code == 0
            assert LogManager._console_handler.level == logging.DEBUG
        finally:
            LogManager.set_console_level("WARNING")

    def test_unknown_level(self, hits_csv: Path):
        result = runner.invoke(app, ["--log-level", "rumoroso", "convert", str(hits_csv)])
        assert result.exit_code == 2


class TestBundle:
    """Test per build_bundle() e il comando bundle."""

    @pytest.fixture
    def script(self, tmp_path: Path) -> Path:
        path = tmp_path / "report.py"
        path.write_text(
            "import sys\n"
            "from csvchain import Table\n"
            "print(Table(sys.argv[1]).fetch_columns().filter('Hits', int).to_json())\n",
            encoding="utf-8",
        )
        return path

    def test_archive_contents(self, hits_csv: Path, script: Path, tmp_path: Path):
        target = build_bundle(hits_csv, script, tmp_path / "app")
        assert target == tmp_path / "app.pyz"

        with zipfile.ZipFile(target) as bundle:
            names = set(bundle.namelist())
        assert "__main__.py" in names
        assert f"{SCRIPT_MODULE}.py" in names
        assert f"{DATA_DIR}/hits.csv" in names
        assert "csvchain/table.py" in names
        assert not any("__pycache__" in n for n in names)

    def test_default_output(self, hits_csv: Path, script: Path):
        assert build_bundle(hits_csv, script) == script.with_suffix(".pyz")

    def test_missing_inputs(self, hits_csv: Path, script: Path, tmp_path: Path):
        with pytest.raises(FileNotReadable):
            build_bundle(tmp_path / "missing.csv", script)
        with pytest.raises(FileNotReadable):
            build_bundle(hits_csv, tmp_path / "missing.py")

    def test_unwritable_target(self, hits_csv: Path, script: Path, tmp_path: Path):
        with pytest.raises(NotWritable):
            build_bundle(hits_csv, script, tmp_path / "no" / "dir" / "app.pyz")

    def test_bundle_runs(self, hits_csv: Path, script: Path, tmp_path: Path):
        target = build_bundle(hits_csv, script, tmp_path / "app.pyz")
        completed = subprocess.run(
            [sys.executable, str(target)], capture_output=True, text=True, check=True
        )
        assert json.loads(completed.stdout) == [
            {"Name": "Foo", "Hits": 10},
            {"Name": "Bar", "Hits": 20},
        ]

    def test_bundle_command(self, hits_csv: Path, script: Path, tmp_path: Path):
        result = runner.invoke(
            app, ["bundle", str(hits_csv), str(script), "-o", str(tmp_path / "cli.pyz")]
        )
        assert result.exit_code == 0
        assert result.stdout.strip() == str(tmp_path / "cli.pyz")
        assert (tmp_path / "cli.pyz").is_file()

    def test_bundle_command_error(self, script: Path, tmp_path: Path):
        result = runner.invoke(app, ["bundle", str(tmp_path / "missing.csv"), str(script)])
        assert result.exit_code == 1
        assert "error:" in result.output
