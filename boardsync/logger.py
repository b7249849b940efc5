"""
Structured Logging for boardsync.
Outputs JSON-formatted logs for machine readability in function logs.
"""

import json
import sys
import logging
from datetime import datetime, timezone

# Configure root logger
logger = logging.getLogger("boardsync")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler(sys.stdout)
logger.addHandler(handler)

class JsonFormatter(logging.Formatter):
    """JSON formatter that dynamically extracts all extra fields."""

    # Standard LogRecord attributes to exclude (these are Python logging internals)
    STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
        'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
        'exc_text', 'stack_info', 'asctime', 'taskName'
    }

    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }

        # Everything passed through `extra` lands on the record
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith('_'):
                try:
                    json.dumps(value)
                    log_record[key] = value
                except (TypeError, ValueError):
                    # Exceptions, dates and the like
                    log_record[key] = str(value)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)

handler.setFormatter(JsonFormatter())

def get_logger(component: str = "SYSTEM"):
    return ComponentLogger(component)

class ComponentLogger:
    def __init__(self, component):
        self.component = component
        self.logger = logging.getLogger("boardsync")

    def _extra(self, item_id, kwargs):
        extra = {"component": self.component}
        if item_id: extra["item_id"] = item_id
        extra.update(kwargs)
        return extra

    def debug(self, msg, item_id=None, **kwargs):
        self.logger.debug(msg, extra=self._extra(item_id, kwargs))

    def info(self, msg, item_id=None, **kwargs):
        self.logger.info(msg, extra=self._extra(item_id, kwargs))

    def warning(self, msg, item_id=None, **kwargs):
        self.logger.warning(msg, extra=self._extra(item_id, kwargs))

    def error(self, msg, item_id=None, exc_info=False, **kwargs):
        self.logger.error(msg, exc_info=exc_info, extra=self._extra(item_id, kwargs))
