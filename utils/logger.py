# Logs optimizer run information to the selected output, configured once per process

import logging
import os
import sys
from datetime import datetime
from typing import Optional

LOG_DIR_ENV = "STRATOPT_LOG_DIR"
LOG_FORMAT = '%(asctime)s - %(levelname)-8s - %(name)s.%(funcName)s:%(lineno)d - %(message)s'

_logger_configured = False
_log_file_path = None

def setup_logging(base_name: str = "optimizer", level=logging.INFO, log_dir: Optional[str] = None) -> Optional[str]:
    """
    Set up the global logging configuration. Should be called once at application startup.

    When ``log_dir`` is given (or the STRATOPT_LOG_DIR environment variable is set) records go to a
    timestamped file in that directory, otherwise to stderr.
    Returns the log file path, or None when logging to stderr.
    """
    global _logger_configured, _log_file_path

    if _logger_configured:
        return _log_file_path

    log_dir = log_dir or os.environ.get(LOG_DIR_ENV)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M-%S')
        _log_file_path = os.path.join(log_dir, f"{base_name}_{timestamp}.log")
        handler = logging.FileHandler(_log_file_path)
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[handler]
    )

    _logger_configured = True
    return _log_file_path

def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance. Automatically sets up logging if not already configured.

    Args:
        name: Logger name. If None, uses the calling module's name.
    """
    if not _logger_configured:
        setup_logging()

    if name is None:
        # Automatically determine the calling module's name
        import inspect
        frame = inspect.currentframe().f_back
        name = frame.f_globals.get('__name__', 'unknown')

    return logging.getLogger(name)
