import logging
import logging.handlers
import json
import os
from typing import Optional, Dict, Any
from fastapi import Request
from config import settings
import uuid
import traceback

class Logger:
    def __init__(self, log_file: str = settings.LOG_FILE, max_log_days: int = settings.LOG_RETENTION_DAYS):
        """
        Initialize the request logger with file rotation, JSON formatting, and dynamic log level.
        """
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        self.logger = logging.getLogger("CatalogRequestLogger")
        self.logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
        self.logger.propagate = False

        # Remove existing handlers to avoid duplication
        self.logger.handlers.clear()

        # File handler with daily rotation
        file_handler = logging.handlers.TimedRotatingFileHandler(
            filename=log_file,
            when="midnight",
            interval=1,
            backupCount=max_log_days,
            encoding="utf-8"
        )

        # Stream handler for stdout
        stream_handler = logging.StreamHandler()

        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "action": "%(message)s",
                "correlation_id": "%(correlation_id)s",
                "context": "%(context)s"
            }, ensure_ascii=False)
        )
        file_handler.setFormatter(formatter)
        stream_handler.setFormatter(formatter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(stream_handler)

    def log_action(
        self,
        action: str,
        level: str = "INFO",
        correlation_id: str = "",
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log an action with context and correlation ID.
        """
        context_str = json.dumps(context or {}, ensure_ascii=False, default=str)
        self.logger.log(
            level=getattr(logging, level.upper(), logging.INFO),
            msg=action,
            extra={
                "correlation_id": correlation_id,
                "context": context_str
            }
        )

    def log_request(
        self,
        request: Request,
        action: str,
        context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log an HTTP request and mint its correlation ID.
        """
        correlation_id = str(uuid.uuid4())
        context = context or {}
        context.update({
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else "unknown"
        })
        self.log_action(action, "INFO", correlation_id, context)
        return correlation_id

    def log_error(
        self,
        action: str,
        error: Exception,
        correlation_id: str = "",
        context: Optional[Dict[str, Any]] = None
    ):
        context = context or {}
        context["error"] = str(error)
        context["error_type"] = type(error).__name__
        context["stack_trace"] = "".join(traceback.format_tb(error.__traceback__)) if error.__traceback__ else "N/A"
        self.log_action(action, "ERROR", correlation_id, context)

# Singleton logger instance
logger_instance = Logger()

# Convenience functions for use in other modules
def log_action(action: str, correlation_id: str = "", context: Optional[Dict[str, Any]] = None):
    logger_instance.log_action(action, "INFO", correlation_id, context)

def log_request(request: Request, action: str, context: Optional[Dict[str, Any]] = None) -> str:
    return logger_instance.log_request(request, action, context)

def log_error(action: str, error: Exception, correlation_id: str = "", context: Optional[Dict[str, Any]] = None):
    logger_instance.log_error(action, error, correlation_id, context)
