"""
Logging infrastructure for the prediction orchestration service.
"""

import json
import logging
import logging.handlers
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_config


@dataclass
class LogEntry:
    """Structured log entry."""

    timestamp: str
    level: str
    logger_name: str
    message: str
    module: str
    function: str
    line_number: int
    thread_id: int
    process_id: int
    extra_data: Dict[str, Any]


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = LogEntry(
            timestamp=datetime.fromtimestamp(record.created).isoformat(),
            level=record.levelname,
            logger_name=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line_number=record.lineno,
            thread_id=record.thread,
            process_id=record.process,
            extra_data=getattr(record, "extra_data", {}),
        )

        return json.dumps(asdict(log_entry), default=str)


class AuditLogger:
    """Specialized logger for model and provider events."""

    def __init__(self, name: str = "audit"):
        self.logger = logging.getLogger(name)
        self._setup_audit_logger()

    def _setup_audit_logger(self):
        """Set up audit logger with its own rotating JSON file."""
        if self.logger.handlers:
            return

        config = get_config()

        audit_log_path = Path(config.logs_path) / "audit.log"
        audit_log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            audit_log_path, maxBytes=10 * 1024 * 1024, backupCount=10  # 10MB
        )

        handler.setFormatter(JSONFormatter())
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.INFO)

    def log_model_operation(
        self,
        user_id: str,
        model_id: str,
        operation: str,
        success: bool,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Log model operations."""
        self.logger.info(
            f"Model operation: {operation} on {model_id}",
            extra={
                "extra_data": {
                    "event_type": "model_operation",
                    "user_id": user_id,
                    "model_id": model_id,
                    "operation": operation,
                    "success": success,
                    "details": details or {},
                }
            },
        )

    def log_provider_event(
        self,
        provider: str,
        model_id: str,
        event: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Log provider failures, fallbacks and circuit transitions."""
        self.logger.warning(
            f"Provider event: {event} for {model_id} via {provider}",
            extra={
                "extra_data": {
                    "event_type": "provider",
                    "provider": provider,
                    "model_id": model_id,
                    "event": event,
                    "details": details or {},
                }
            },
        )


class LoggingManager:
    """Central logging manager."""

    def __init__(self):
        self.config = get_config()
        self.audit_logger = AuditLogger()
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Set up root logger configuration."""
        logs_path = Path(self.config.logs_path)
        logs_path.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self.config.log_level, logging.INFO))

        # Clear existing handlers
        root_logger.handlers.clear()

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

        # File handler
        file_handler = logging.handlers.RotatingFileHandler(
            logs_path / "application.log",
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5,
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

        # Error file handler
        error_handler = logging.handlers.RotatingFileHandler(
            logs_path / "error.log", maxBytes=10 * 1024 * 1024, backupCount=10  # 10MB
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(error_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger with the specified name."""
        return logging.getLogger(name)

    def get_audit_logger(self) -> AuditLogger:
        """Get the audit logger."""
        return self.audit_logger


# Global logging manager instance
logging_manager = LoggingManager()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging_manager.get_logger(name)


def get_audit_logger() -> AuditLogger:
    """Get the audit logger."""
    return logging_manager.get_audit_logger()
