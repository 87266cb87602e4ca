"""
Logging setup - JSON structured logs for Cloud Logging with secret redaction.
"""

import json
import logging
import re

SENSITIVE_PATTERNS = [
    (re.compile(r'((?:password|senha)["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([^"\'&\s,}]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(Bearer\s+)([a-zA-Z0-9._-]+)', re.I), r'\1***REDACTED***'),
    (re.compile(r'(://[^:/@\s]+:)([^@\s]+)(@)'), r'\1***REDACTED***\3'),  # credenciais em URLs
]


def sanitize_log_message(message: str) -> str:
    """Remove sensitive data patterns from log messages."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class SensitiveDataFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_log_message(record.getMessage())
        record.args = None
        return True


# Configuração de Logs (JSON Estruturado para Cloud Logging)
class JsonFormatter(logging.Formatter):
    def format(self, record):
        json_log = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, self.datefmt),
            "logger": record.name,
            "module": record.module,
        }
        if hasattr(record, "props"):
            json_log.update(record.props)

        if record.exc_info:
            json_log["exception"] = self.formatException(record.exc_info)

        return json.dumps(json_log, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
    # SQL echo só quando pedido explicitamente
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
