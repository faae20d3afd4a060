"""
carecal logger: console + optional rotating JSON file.

Usage:
    from carecal.core.logger import configure, LoggerConfig

    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/carecal"))
    configure()  # LoggerConfig.from_env(): LOG_LEVEL, LOG_DIR, ...

Modules keep using ``logging.getLogger(__name__)``; names under ``carecal.``
inherit the configured handlers.
"""
from carecal.core.logger.config import LoggerConfig
from carecal.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from carecal.core.logger.setup import configure, get_logger

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
]
