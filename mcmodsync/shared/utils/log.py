"""
Logging setup shared by the mcmodsync server and client
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def parse_log_level(level) -> int:
    """Accept a logging level as a number or a name such as 'info'"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level}")
    return value


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """Set up a logger with the specified name and level"""
    level = parse_log_level(level)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
