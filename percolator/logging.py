import logging
from contextlib import contextmanager
from json import dumps as json_dumps
from logging import Formatter, StreamHandler, getLogger
from os import environ
from time import monotonic_ns

from click import secho

VERBOSITY_MAPPING = {
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class JsonFormatter(Formatter):
    def format(self, record):
        log_record = {
            "level": record.levelname,
            "name": record.name,
            "timestamp": self.formatTime(record, self.datefmt),
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json_dumps(log_record)


class ColorHandler(StreamHandler):
    def emit(self, record):
        try:
            msg = self.format(record)
            if record.levelno == logging.WARNING:
                secho(msg, fg="yellow")
            elif record.levelno >= logging.ERROR:
                secho(msg, fg="red")
            else:
                secho(msg)
        except Exception:
            self.handleError(record)


def setup_logger(name, log_level=logging.DEBUG):
    """
    Constructor for the main logger used by Percolator and optionally for the host
    application as well. Provides convenient defaults for log level and formatting,
    alongside coloring of stdout/stderr messages and JSON fields for structured parsing.

    Logs are formatted one per line:
    ```json
    {"level": "INFO", "name": "percolator.logging", "timestamp": "2025-02-25 20:40:35,896", "message": "Done. 12 files compiled."}
    ```

    To pull out the compilation failures from a deployment log:

    ```bash
    grep '"level": "ERROR"' logfile.txt | grep 'failed to compile'
    ```

    ```python {{sticky: True}}
    from percolator.logging import setup_logger
    import logging

    logger = setup_logger(__name__, log_level=logging.INFO)
    logger.info("Serving compiled assets")
    ```

    :param name: The name of the logger, typically the module name
    :param log_level: The logging level. Defaults to logging.DEBUG to log everything.

    :return: A configured logger instance

    """
    logger = getLogger(name)
    logger.setLevel(log_level)

    # Create a handler that writes log records to the standard error
    handler = ColorHandler()
    handler.setLevel(log_level)

    formatter = JsonFormatter()
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    return logger


@contextmanager
def log_time_duration(message: str):
    """
    Context manager to time a code block at runtime.

    ```python
    with log_time_duration("Precompile coffee scripts"):
        precompiler.run()
    ```

    """
    start = monotonic_ns()
    yield
    LOGGER.debug(f"{message} : Took {(monotonic_ns() - start) / 1e9:.2f}s")


def setup_internal_logger(name: str):
    """
    Our global logger should only surface warnings and above by default.

    To adjust Percolator logging, set the PERCOLATOR_LOG_LEVEL environment
    variable in your local session. By default it is set to WARNING and above.

    """
    return setup_logger(
        name,
        log_level=VERBOSITY_MAPPING[environ.get("PERCOLATOR_LOG_LEVEL", "WARNING")],
    )


def pluralize(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


LOGGER = setup_internal_logger(__name__)
