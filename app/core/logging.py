import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    Uses LOG_LEVEL from settings when no level is given. Pass ``force=True`` to
    reconfigure, e.g. from tests.
    """
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
