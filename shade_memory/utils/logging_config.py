"""
Structured logging configuration and utilities
"""

import logging
import logging.handlers
import json
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional
from contextlib import contextmanager

from shade_memory.config.app_config import LoggingConfig, get_config


# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_RECORD_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime'
}


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs
    """
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""
        
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }
        
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_FIELDS
        }
        
        if extra_fields:
            log_data["extra"] = extra_fields
            
        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(logging_config: Optional[LoggingConfig] = None, debug: Optional[bool] = None) -> logging.Logger:
    """
    Set up structured logging for the application
    
    Args:
        logging_config: Logging settings (global configuration if omitted)
        debug: Human-readable console output instead of JSON
        
    Returns:
        logging.Logger: Configured root logger
    """
    if logging_config is None or debug is None:
        config = get_config()
        logging_config = logging_config or config.logging
        debug = config.debug if debug is None else debug
    
    level = getattr(logging, logging_config.level.upper(), logging.INFO)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    
    # Clear existing handlers
    root_logger.handlers.clear()
    
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    
    if debug:
        # Human-readable format for development
        console_formatter = logging.Formatter(
            logging_config.format + ' [%(filename)s:%(lineno)d]'
        )
    else:
        console_formatter = StructuredFormatter()
    
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)
    
    if logging_config.enable_file_logging:
        log_file_path = Path(logging_config.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)  # Always debug level for files
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)
    
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        logging.Logger: Configured logger
    """
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Context manager to log execution time of operations
    
    Args:
        logger: Logger instance
        operation: Description of the operation
        **extra_fields: Additional fields to include in log
    """
    start_time = datetime.now()
    
    try:
        logger.debug(f"Starting {operation}", extra={
            "operation": operation,
            "start_time": start_time.isoformat(),
            **extra_fields
        })
        
        yield
        
        duration = (datetime.now() - start_time).total_seconds()
        
        logger.info(f"Completed {operation}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "success",
            **extra_fields
        })
        
    except Exception as e:
        duration = (datetime.now() - start_time).total_seconds()
        
        logger.error(f"Failed {operation}: {str(e)}", extra={
            "operation": operation,
            "duration_seconds": duration,
            "status": "error",
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        }, exc_info=True)
        
        raise


def log_session_event(logger: logging.Logger, event_type: str, session_id: str, **details):
    """
    Log session-related events
    
    Args:
        logger: Logger instance
        event_type: Type of event (e.g., "saved", "deleted", "renamed")
        session_id: Session identifier
        **details: Additional event details
    """
    logger.info("Session event", extra={
        "event_type": "session_event",
        "session_event_type": event_type,
        "session_id": session_id,
        "timestamp": datetime.now().isoformat(),
        **details
    })
