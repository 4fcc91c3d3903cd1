"""
Queue-based logging for the card service.

Request threads only put records on a queue; one listener thread formats them
to stdout, so lines written by concurrent requests never interleave.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Turned down to WARNING unless debug logging is on
NOISY_LOGGERS = (
    "pymongo",
    "pymongo.command",
    "pymongo.connection",
    "pymongo.serverSelection",
    "pymongo.topology",
    "urllib3",
    "werkzeug",
)


class ThreadSafeLoggingConfig:
    """Owns the logging queue and its listener thread."""

    def __init__(self):
        self._listener: Optional[logging.handlers.QueueListener] = None

    @property
    def is_running(self) -> bool:
        return self._listener is not None

    def setup_logging(self, debug: bool = False) -> None:
        """Route the root logger through a queue.

        Safe to call more than once; the previous listener is stopped first.

        Args:
            debug: Log at DEBUG and keep third-party libraries verbose
        """
        self.stop()

        log_queue: Queue = Queue()
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        self._listener = logging.handlers.QueueListener(log_queue, console, respect_handler_level=True)
        self._listener.start()

        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(logging.handlers.QueueHandler(log_queue))
        root.setLevel(logging.DEBUG if debug else logging.INFO)

        level = logging.NOTSET if debug else logging.WARNING
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(level)

    def stop(self) -> None:
        """Flush pending records and stop the listener thread."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False) -> None:
    """Configure process-wide logging; see ``ThreadSafeLoggingConfig.setup_logging``."""
    logging_config.setup_logging(debug)


def stop_logging() -> None:
    logging_config.stop()
