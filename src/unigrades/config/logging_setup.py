import logging

from unigrades.config.settings import settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "") -> None:
    resolved = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("unigrades").setLevel(resolved)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
