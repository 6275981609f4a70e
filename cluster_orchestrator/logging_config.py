"""Logging configuration for the cluster orchestrator.

Records carry a ``cluster`` field so that lines of several clusters, or of
several components of one cluster, can be told apart in a shared log.
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(cluster)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = {
    "urllib3": logging.WARNING,
    "kubernetes": logging.WARNING,
    "kubernetes.client.rest": logging.WARNING,
}


class ClusterFieldFilter(logging.Filter):
    """Give records logged without cluster context a placeholder."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cluster"):
            record.cluster = "-"
        return True


class ComponentLogger(logging.LoggerAdapter):
    """Prefixes messages with the component name and tags them with the cluster."""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("cluster", self.extra["cluster"])
        return f"{self.extra['component']}: {msg}", kwargs


def setup_logging(level: str = "INFO", log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        verbose: If True, set level to DEBUG
    """
    if verbose:
        level = "DEBUG"

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    cluster_filter = ClusterFieldFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    # Tick progress goes to the log file; the console only shows problems
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if not verbose else logging.DEBUG)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(cluster_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(cluster_filter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.warning(f"Failed to create log file handler: {e}")

    for name, cap in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(cap)


def setup_logging_from_settings(settings, verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure logging from operator settings; explicit CLI options win."""
    if log_file is None and settings.log_file:
        log_file = Path(settings.log_file)
    setup_logging(level=settings.log_level, log_file=log_file, verbose=verbose)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def component_logger(name: str, cluster: str, component: str) -> ComponentLogger:
    """Get a logger whose records name the cluster and the component."""
    return ComponentLogger(logging.getLogger(name), {"cluster": cluster, "component": component})
