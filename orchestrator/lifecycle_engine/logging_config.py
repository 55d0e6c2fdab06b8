import logging

from .config import Settings, get_settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(settings: Settings = None) -> None:
    """Configure root logging from settings. Safe to call more than once."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
    # The kubernetes client logs every request body at DEBUG
    logging.getLogger("kubernetes.client.rest").setLevel(logging.WARNING)
