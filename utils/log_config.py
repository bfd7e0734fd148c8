# Logging helpers shared by the driver script and the worker processes

import logging

# 'none' is mapped above CRITICAL so that nothing is emitted
LOG_LEVEL_NONE = logging.CRITICAL + 10

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
    'none': LOG_LEVEL_NONE,
}

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

logger = logging.getLogger(__name__)


def parse_log_level(level_name, default='info'):
    """
    Converts a textual level (debug, info, warning, error, critical, none) to a logging level.
    Unknown names fall back to `default` with a warning.
    """
    level = LOG_LEVELS.get(str(level_name).strip().lower())
    if level is None:
        logger.warning(f"Invalid log level '{level_name}'. Defaulting to '{default}'.")
        return LOG_LEVELS[default]
    return level


def level_name(level):
    for name, value in LOG_LEVELS.items():
        if value == level:
            return name
    return logging.getLevelName(level).lower()


def configure_logging(level=logging.INFO):
    # force=True replaces handlers inherited from a parent process or an earlier call
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    if level >= LOG_LEVEL_NONE:
        logging.disable(logging.CRITICAL)
    else:
        logging.disable(logging.NOTSET)
