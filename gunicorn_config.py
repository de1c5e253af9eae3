"""Gunicorn configuration file.

The map screen keeps its state in process memory, so a deployment runs a
single Uvicorn worker; every client talks to the same screen.
"""

import logging
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8080')}"
backlog = 256

workers = 1
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 60
graceful_timeout = 15
keepalive = 5

errorlog = "-"
loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")
accesslog = "-"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'
logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s [%(process)d] [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "[%Y-%m-%d %H:%M:%S %z]",
        },
        "access": {
            "format": access_log_format,
        },
    },
    "handlers": {
        "error_console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        },
        "access_console": {
            "class": "logging.StreamHandler",
            "formatter": "access",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "gunicorn.error": {
            "level": loglevel.upper(),
            "handlers": ["error_console"],
            "propagate": False,
        },
        "gunicorn.access": {
            "level": "INFO",
            "handlers": ["access_console"],
            "propagate": False,
        },
    },
    "root": {
        "level": loglevel.upper(),
        "handlers": ["error_console"],
    },
}

proc_name = "mapscreen"

wsgi_app = "app:app"


def on_starting(_server):
    """Log when server starts."""
    logging.getLogger("gunicorn.error").info(
        "Starting Gunicorn with %d worker, timeout %ds", workers, timeout
    )


def on_exit(_server):
    """Log when server exits."""
    logging.getLogger("gunicorn.error").info("Gunicorn server shutting down.")


def worker_abort(worker):
    """Log worker timeouts."""
    logging.getLogger("gunicorn.error").warning(
        "Worker %d was aborted due to timeout",
        worker.pid,
    )
