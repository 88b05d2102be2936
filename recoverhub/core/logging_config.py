import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process (API and worker)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("recoverhub").setLevel(level.upper())
