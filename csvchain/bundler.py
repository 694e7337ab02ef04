"""
Crea un bundle eseguibile (zipapp) con la libreria csvchain, un file di dati e
uno script.

All'avvio il bundle estrae il file di dati in una directory temporanea, ne
espone il path in $CSVCHAIN_DATA_FILE e come primo argomento di sys.argv,
poi esegue lo script come __main__.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import zipapp
from pathlib import Path
from typing import Optional

from .errors import FileNotReadable, NotWritable
from .logger import LogManager

log = LogManager("bundler").get_logger()

DATA_FILE_ENV = "CSVCHAIN_DATA_FILE"
SCRIPT_MODULE = "_csvchain_script"
DATA_DIR = "_csvchain_data"
DEFAULT_INTERPRETER = "/usr/bin/env python3"

_BOOTSTRAP = '''\
import os
import runpy
import sys
import tempfile
import zipfile

archive = os.path.dirname(os.path.abspath(__file__))
target_dir = tempfile.mkdtemp(prefix="csvchain_")
with zipfile.ZipFile(archive) as bundle:
    data_path = bundle.extract("{data_dir}/{data_name}", target_dir)

os.environ["{env}"] = data_path
os.environ.setdefault("CSVCHAIN_LOG_DIR", os.path.join(target_dir, "logs"))
sys.argv = [sys.argv[0], data_path] + sys.argv[1:]
runpy.run_module("{module}", run_name="__main__", alter_sys=True)
'''


def build_bundle(
    data_file: str | os.PathLike,
    script_file: str | os.PathLike,
    output: Optional[str | os.PathLike] = None,
    interpreter: str = DEFAULT_INTERPRETER,
) -> Path:
    """
    Impacchetta data_file + script_file + libreria in un unico .pyz eseguibile.

    Args:
        data_file: file di dati (tipicamente un CSV) da includere
        script_file: script Python eseguito all'avvio del bundle
        output: path (o alias) del bundle; default '<script>.pyz' accanto allo script
        interpreter: shebang del bundle

    Returns:
        Path del bundle creato.
    """
    data_path = Path(data_file)
    script_path = Path(script_file)
    for source in (data_path, script_path):
        if not source.is_file():
            raise FileNotReadable(str(source))

    target = Path(output) if output else script_path.with_suffix(".pyz")
    if target.suffix != ".pyz":
        target = target.with_name(target.name + ".pyz")
    if not target.parent.is_dir() or not os.access(target.parent, os.W_OK):
        raise NotWritable(str(target))

    package_dir = Path(__file__).resolve().parent

    with tempfile.TemporaryDirectory(prefix="csvchain_bundle_") as staging:
        staging_path = Path(staging)
        shutil.copytree(
            package_dir,
            staging_path / package_dir.name,
            ignore=shutil.ignore_patterns("__pycache__", "*.pyc"),
        )
        (staging_path / DATA_DIR).mkdir()
        shutil.copy2(data_path, staging_path / DATA_DIR / data_path.name)
        shutil.copy2(script_path, staging_path / f"{SCRIPT_MODULE}.py")
        (staging_path / "__main__.py").write_text(
            _BOOTSTRAP.format(
                data_dir=DATA_DIR,
                data_name=data_path.name,
                env=DATA_FILE_ENV,
                module=SCRIPT_MODULE,
            ),
            encoding="utf-8",
        )

        zipapp.create_archive(staging_path, target, interpreter=interpreter, compressed=True)

    log.info("Bundle creato: %s (dati=%s, script=%s)", target, data_path.name, script_path.name)
    return target
