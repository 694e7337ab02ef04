from __future__ import annotations

from csvchain.cli import app
from csvchain.logger import LogManager


def main() -> None:
    """Avvia la CLI di csvchain."""
    logger = LogManager("main").get_logger()
    try:
        app()
    except Exception as exc:
        logger.error("Errore critico nella CLI: %s", exc, exc_info=True)
        raise


if __name__ == "__main__":
    main()
