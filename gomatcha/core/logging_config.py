import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure le logging racine de l'application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx journalise chaque requête en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
