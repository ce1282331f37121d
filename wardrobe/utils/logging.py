"""
Logging for the storefront and the back-office screens.

``setup_logging`` runs once per process; every module then asks for its
logger with ``log = get_logger(__name__)``. Records raised while serving a
request carry the HTTP method and path so a failed backend call can be
traced back to the screen that made it.
"""
import logging
import logging.handlers
import os
from typing import Optional

from flask import Flask, current_app, has_app_context, has_request_context, request
from ..config import DEFAULT_LOG_LEVEL, DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT

ROOT_LOGGER = "wardrobe"
LOG_FILE_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_configured = False


def _level_for(app: Flask) -> int:
    if app.debug:
        return logging.DEBUG
    name = str(app.config.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    return logging.getLevelName(name) if isinstance(logging.getLevelName(name), int) else logging.INFO


def _rotating_file(app: Flask, path: str, formatter: logging.Formatter) -> Optional[logging.Handler]:
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8",
        )
    except OSError as exc:
        app.logger.warning(f"Cannot write log file {path}: {exc}")
        return None
    handler.setFormatter(formatter)
    return handler


def setup_logging(app: Optional[Flask] = None) -> None:
    """
    Attach console (and optionally file) handlers to the root logger and make
    the app logger share them. Later calls are no-ops, so the test suite can
    build as many apps as it likes.
    """
    global _configured
    if _configured:
        return

    if app is None and has_app_context():
        app = current_app

    if app is None:
        logging.basicConfig(level=logging.INFO, format=DEFAULT_LOG_FORMAT)
        _configured = True
        return

    level = _level_for(app)
    formatter = logging.Formatter(
        app.config.get("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        datefmt=app.config.get("LOG_DATEFMT", DEFAULT_LOG_DATEFMT),
    )

    handlers = [logging.StreamHandler()]
    log_file = app.config.get("LOG_FILE")
    if log_file:
        file_handler = _rotating_file(app, log_file, formatter)
        if file_handler is not None:
            handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(RequestFilter())
        root.addHandler(handler)

    app.logger.propagate = False
    app.logger.handlers = root.handlers[:]
    app.logger.setLevel(level)

    app.logger.info(f"Logging ready at {logging.getLevelName(level)}"
                    + (f", also writing {log_file}" if log_file else ""))
    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    ``log = get_logger(__name__)`` gives ``wardrobe.<last part of the module name>``,
    hung under the app logger when one is active.
    """
    if has_app_context() and current_app:
        base = current_app.logger
    else:
        base = logging.getLogger(ROOT_LOGGER)

    if not name or name == "__main__":
        return base

    return base.getChild(name.rsplit(".", 1)[-1])


class RequestFilter(logging.Filter):
    """Prefix records logged during a request with its method and path."""
    def filter(self, record):
        if isinstance(record.msg, bytes):
            record.msg = record.msg.decode("utf-8", errors="replace")
        if has_request_context() and not getattr(record, "_request_tagged", False):
            path = request.path.replace("%", "%%") if record.args else request.path
            record.msg = f"[{request.method} {path}] {record.msg}"
            record._request_tagged = True
        return True
