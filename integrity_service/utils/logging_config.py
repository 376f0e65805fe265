"""
Centralized Logging Configuration for the integrity monitor
"""
import logging
import logging.handlers
import sys
from pathlib import Path

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("redis", "httpx", "uvicorn.access")


def setup_logging(
    service_name: str = "integrity-monitor",
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs"
) -> logging.Logger:
    """
    Set up console logging and, optionally, a rotating log file
    
    Args:
        service_name: Logger name and log filename
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Also write to <log_dir>/<service_name>.log
        log_dir: Directory for the log file, created on demand
    
    Returns:
        The service logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []
    
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    
    log_file = None
    if log_to_file:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / f"{service_name}.log"
        
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    
    logger = logging.getLogger(service_name)
    logger.info(f"Logging configured: level={level} file={log_file or 'none'}")
    return logger
