"""
Logging configuration and utilities.
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

OUTPUT_LOGGER_NAME = "provisioner.output"
OUTPUT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class OutputSink(Protocol):
    """Receives formatted subprocess output lines, possibly from two streams at once."""

    def __call__(self, line: str) -> None: ...


class LoggingOutputSink:
    """Forwards subprocess output to the ``provisioner.output`` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(OUTPUT_LOGGER_NAME)

    def __call__(self, line: str) -> None:
        self.logger.info(line)


def timestamp_line(line: str, now: Optional[datetime] = None) -> str:
    """Prefix an output line with the wall-clock time it was read."""
    now = now or datetime.now()
    return f"{now.strftime(OUTPUT_TIME_FORMAT)}   {line}"


def setup_root_logger(log_file: Optional[Path] = None, 
                     level: str = "INFO",
                     max_file_size_mb: int = 10,
                     backup_count: int = 5):
    """
    Set up the root logger for the application.
    
    Script output lines already carry their own timestamp, so the output
    logger gets a bare message format and does not propagate to the root.
    
    Args:
        log_file: Optional log file path
        level: Logging level
        max_file_size_mb: Rotate the log file at this size
        backup_count: Rotated files to keep
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    )
    
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    
    output_logger = logging.getLogger(OUTPUT_LOGGER_NAME)
    output_logger.handlers.clear()
    output_logger.propagate = False
    output_logger.setLevel(logging.INFO)
    output_formatter = logging.Formatter("%(message)s")
    
    output_console = logging.StreamHandler()
    output_console.setFormatter(output_formatter)
    output_logger.addHandler(output_console)
    
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        
        output_file = logging.handlers.RotatingFileHandler(
            log_file.with_suffix(".output.log"),
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count
        )
        output_file.setFormatter(output_formatter)
        output_logger.addHandler(output_file)
    
    # Set levels for third-party loggers
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("s3transfer").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
