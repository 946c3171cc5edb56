"""Logging setup: JSON lines to a rotating file, plain text to the console."""
import logging
import os
import json
from logging.handlers import RotatingFileHandler
from flask import g, has_request_context, request
from shared.models import now

LOG_FILE_NAME = 'survey_backend.log'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5
QUIET_LOGGERS = ('werkzeug', 'sqlalchemy.engine', 'urllib3', 'requests', 'libcloud')


class RequestContextFilter(logging.Filter):
    """Tag records emitted while serving a request with its method, path and user."""

    def filter(self, record):
        if has_request_context():
            user = g.get('user')
            record.request = {
                'method': request.method,
                'path': request.path,
                'user_id': user.id if user is not None else None,
            }
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line.

    Context passed as ``extra={'extra_fields': {...}}`` is merged into the entry.
    """

    def format(self, record):
        entry = {
            'timestamp': now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if getattr(record, 'request', None):
            entry['request'] = record.request
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        entry.update(getattr(record, 'extra_fields', {}))
        return json.dumps(entry, default=str)


def _file_handler(logs_dir, level):
    os.makedirs(logs_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(logs_dir, LOG_FILE_NAME),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS
    )
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter())
    handler.addFilter(RequestContextFilter())
    return handler


def _console_handler(level):
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s %(name)-28s %(message)s'))
    return handler


def setup_logging(log_level_str=None, logs_dir=None):
    """Configure the root logger for the API process.

    Args:
        log_level_str: Level name; falls back to the LOG_LEVEL environment variable
        logs_dir: Directory for the rotating JSON log; LOG_DIR or ``logs/`` at the repo root
    """
    level_name = (log_level_str or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    logs_dir = logs_dir or os.getenv('LOG_DIR') or os.path.join(os.path.dirname(__file__), '..', 'logs')

    root = logging.getLogger()
    root.setLevel(level)

    # create_app may run many times in one process (tests)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.addHandler(_file_handler(logs_dir, level))
    root.addHandler(_console_handler(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info("Logging initialized", extra={
        'extra_fields': {'log_level': level_name, 'logs_dir': os.path.abspath(logs_dir)}
    })
    return root
