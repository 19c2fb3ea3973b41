import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name="globwatch", log_dir=None, log_filename="globwatch.log",
                 level=logging.INFO, console=True):
    """
    Set up and return a logger with optional file and console handlers.

    Args:
        name (str): The logger name.
        log_dir (str): Directory where the log file will be stored; no file
            handler is added when it is None.
        log_filename (str): Log file name.
        level (int): Logging level.
        console (bool): Whether to add a console handler.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def level_from_name(name, default=logging.INFO):
    """Resolve a level name such as 'debug' to its numeric value."""
    if not name:
        return default
    level = getattr(logging, str(name).upper(), default)
    return level if isinstance(level, int) else default


def get_logger(component=None, name="globwatch"):
    """
    Return the logger for a GlobWatch component.

    Component loggers are children of the application logger, so they share
    the handlers and level installed by setup_logger().
    """
    return logging.getLogger(f"{name}.{component}" if component else name)
