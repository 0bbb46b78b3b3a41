"""
Centralized logging configuration.

setup_logging configures the root logger once per process with:
- Console output (message-only at WARNING for interactive tools, timestamped
  DEBUG otherwise)
- File output to $KILAR_LOG_DIR/{service_name}.log when a service name is given
- Fresh log file on each start unless KILAR_LOG_APPEND is set
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from kilar.config import env_bool, env_str

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_UNKNOWN_LOGGER_NAME = "<unknown>"
_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("psutil", "asyncio")


def _should_skip_logging_configuration(root_logger: logging.Logger, service_name: Optional[str]) -> bool:
    if not root_logger.handlers:
        return False
    has_console = any(
        isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler) for handler in root_logger.handlers
    )
    if not service_name:
        has_file = True
    else:
        has_file = any(isinstance(handler, logging.FileHandler) for handler in root_logger.handlers)
    return has_console and has_file


def _close_handlers(logger: logging.Logger, logger_name: Optional[str] = None) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            safe_name = logger_name if logger_name else _UNKNOWN_LOGGER_NAME
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", safe_name, e)
    logger.handlers = []


def _build_console_handler(user_friendly: bool) -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    if user_friendly:
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        console_handler.setLevel(logging.WARNING)
    else:
        console_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
        console_handler.setLevel(logging.DEBUG)
    return console_handler


def _configure_file_handler(service_name: Optional[str]) -> Optional[logging.Handler]:
    if not service_name:
        return None

    logs_dir = Path(env_str("KILAR_LOG_DIR", or_value="logs") or "logs").expanduser()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"{service_name}.log"
    file_mode = "a" if env_bool("KILAR_LOG_APPEND", or_value=False) else "w"

    file_handler = logging.handlers.WatchedFileHandler(log_path, mode=file_mode)
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.INFO)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(service_name: Optional[str] = None, user_friendly: bool = False) -> None:
    """Configure logging for the application"""

    with _config_lock:
        root_logger = logging.getLogger()
        if _should_skip_logging_configuration(root_logger, service_name):
            return

        _close_handlers(root_logger)
        root_logger.addHandler(_build_console_handler(user_friendly))

        file_handler = _configure_file_handler(service_name)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(logging.DEBUG if not user_friendly else logging.INFO)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
