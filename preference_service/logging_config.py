"""
Logging Configuration Module

Queue-based logging for the preference service: the metadata extractor,
embedding resolver and scorer log from worker threads, and a single listener
writes the records so lines never interleave.
"""

import logging
import logging.handlers
import sys
from queue import Queue
from typing import Optional

# Chatty client libraries used by the LLM and embedding adapters
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "openai",
    "langchain_core",
    "langchain_openai",
    "langchain_deepseek",
    "langchain_ollama",
)


class _MuteHttpFilter(logging.Filter):
    """Drop per-request lines emitted by HTTP clients."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        name = record.name or ""
        if name.startswith(("httpx", "httpcore")):
            return False
        msg = record.getMessage()
        return not (isinstance(msg, str) and msg.startswith(("HTTP Request:", "HTTP Response:")))


class ThreadSafeLoggingConfig:
    """Thread-safe logging configuration with queue-based logging."""

    def __init__(self):
        self._log_listener: Optional[logging.handlers.QueueListener] = None
        self._log_queue: Optional[Queue] = None

    def setup_logging(self, debug: bool = False) -> None:
        """
        Route all records through a queue to one console handler.

        Args:
            debug: Whether to enable debug logging
        """
        self.stop()
        self._log_queue = Queue()
        queue_handler = logging.handlers.QueueHandler(self._log_queue)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

        self._log_listener = logging.handlers.QueueListener(
            self._log_queue, console_handler, respect_handler_level=True
        )
        self._log_listener.start()

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(queue_handler)
        root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

        if not debug:
            self._silence_noisy_libraries()

    def _silence_noisy_libraries(self) -> None:
        for handler in logging.getLogger().handlers:
            handler.addFilter(_MuteHttpFilter())

        for name in NOISY_LOGGERS:
            logger = logging.getLogger(name)
            logger.setLevel(logging.CRITICAL if name in ("httpx", "httpcore") else logging.WARNING)

    def stop(self) -> None:
        """Stop the logging listener and cleanup."""
        if self._log_listener:
            self._log_listener.stop()
            self._log_listener = None
        self._log_queue = None


# Global logging configuration instance
logging_config = ThreadSafeLoggingConfig()


def setup_logging(debug: bool = False) -> None:
    """Setup thread-safe logging configuration."""
    logging_config.setup_logging(debug)


def stop_logging() -> None:
    """Stop the logging listener and cleanup."""
    logging_config.stop()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
