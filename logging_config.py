# logging_config.py

import logging
import structlog
import sys
from typing import Any, Dict
from flask import has_request_context, request, g


def add_request_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add Flask request context to log entries"""
    if has_request_context():
        event_dict["request_id"] = getattr(g, 'request_id', None)
        event_dict["remote_addr"] = request.remote_addr
        event_dict["method"] = request.method
        event_dict["path"] = request.path
    return event_dict


def setup_logging(app_name: str = "account-reminders", log_level: str = "INFO") -> None:
    """
    Configure structured logging for production use

    Args:
        app_name: Application name for log identification
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_request_context,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    logging.getLogger(app_name).setLevel(level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog instance
    """
    return structlog.get_logger(name or __name__)


class AlertAuditLogger:
    """Audit trail for alert delivery decisions"""

    def __init__(self):
        self.logger = get_logger("alerts.audit")

    def log_delivered(self, alert_id: str, alert_type: str, entity_id: str, days_until: int):
        """Log a delivered alert"""
        self.logger.info(
            "Alert delivered",
            alert_id=alert_id,
            alert_type=alert_type,
            entity_id=entity_id,
            days_until=days_until,
            event_type="alert_delivered"
        )

    def log_delivery_failed(self, alert_id: str, alert_type: str, error: str = None):
        """Log a delivery attempt the collaborator rejected"""
        self.logger.warning(
            "Alert delivery failed",
            alert_id=alert_id,
            alert_type=alert_type,
            error=error,
            event_type="alert_delivery_failed"
        )

    def log_pass_summary(self, evaluated: int, delivered: int, skipped: int, failed: int):
        """Log the outcome of one evaluation pass"""
        self.logger.info(
            "Alert evaluation pass",
            evaluated=evaluated,
            delivered=delivered,
            skipped=skipped,
            failed=failed,
            event_type="alert_pass"
        )


# Global logger instance
alert_audit_logger = AlertAuditLogger()
