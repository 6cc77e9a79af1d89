import logging

from pos_engine.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a root handler for hosts that do not configure logging themselves."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # Request-level chatter from httpx drowns out retry warnings.
    logging.getLogger("httpx").setLevel(logging.WARNING)
