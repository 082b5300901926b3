"""
Logging configuration for the Prop Pool application

Console output for the CLI and dev server, rotating files for the full log
and for errors only. Service modules tag their lines with pool and prop ids
through ContextualLogger.
"""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEBUG_FORMAT = LOG_FORMAT + " [%(filename)s:%(lineno)d]"
ERROR_FORMAT = LOG_FORMAT + " [%(pathname)s:%(lineno)d]"


class ColoredFormatter(logging.Formatter):
    """Colour the level name on console output"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        # Colour a copy so file handlers sharing the record stay plain
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _rotating_handler(path, level, fmt, max_bytes, backup_count):
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    handler._proppool_handler = True
    return handler


def setup_logging(app):
    """
    Attach Prop Pool handlers to the root logger.

    Safe to call once per app instance: handlers from an earlier call are
    replaced, handlers installed by anyone else (pytest's caplog) are kept.
    """
    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO").upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        if getattr(handler, "_proppool_handler", False):
            root_logger.removeHandler(handler)
            handler.close()

    if app.config.get("LOG_TO_CONSOLE", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        if app.debug:
            console_handler.setFormatter(ColoredFormatter(DEBUG_FORMAT, datefmt="%H:%M:%S"))
        else:
            console_handler.setFormatter(
                logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
        console_handler._proppool_handler = True
        root_logger.addHandler(console_handler)

    if app.config.get("LOG_TO_FILE", True):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "proppool.log"),
                log_level,
                LOG_FORMAT,
                max_bytes=10 * 1024 * 1024,
                backup_count=5,
            )
        )
        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "errors.log"),
                logging.ERROR,
                ERROR_FORMAT,
                max_bytes=5 * 1024 * 1024,
                backup_count=3,
            )
        )

    # SQL echo is controlled by SQLALCHEMY_ECHO, not the app level
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    app.logger.info(f"Logging configured - Level: {logging.getLevelName(log_level)}")


def get_logger(name):
    return logging.getLogger(name)


class ContextualLogger:
    """
    Logger that appends bound key=value pairs to every message.

        log = ContextualLogger(__name__).bind(pool_id=pool.id)
        log.info("Prop resolved")  # "Prop resolved [pool_id=...]"
    """

    def __init__(self, name, context=None):
        self.logger = get_logger(name)
        self.context = context or {}

    def bind(self, **context):
        """Return a new logger carrying extra context"""
        return ContextualLogger(self.logger.name, {**self.context, **context})

    def _format_message(self, message):
        if not self.context:
            return message
        context_str = " ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{message} [{context_str}]"

    def info(self, message, **kwargs):
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message, **kwargs):
        self.logger.warning(self._format_message(message), **kwargs)
