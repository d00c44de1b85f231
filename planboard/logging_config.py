import logging
import os


def configure_logging(level_name: str | None = None) -> None:
    level_name = (os.getenv("PLANBOARD_LOG_LEVEL") or level_name or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
