"""Gunicorn settings for the ESP reservation back office."""

import os

bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:8000')

# SQLite takes one writer at a time: few processes, a handful of threads each
workers = int(os.environ.get('GUNICORN_WORKERS', 2))
threads = int(os.environ.get('GUNICORN_THREADS', 4))
worker_class = 'gthread'

# Decisions and the monthly report send mail inside the request
timeout = 120
graceful_timeout = 30
keepalive = 5

log_dir = os.environ.get('LOG_DIR', 'logs')
accesslog = os.path.join(log_dir, 'gunicorn-access.log')
errorlog = os.path.join(log_dir, 'gunicorn-error.log')
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')

proc_name = 'esp-reservation'
preload_app = True

max_requests = 1000
max_requests_jitter = 50


def on_starting(server):
    """Create the log directory before gunicorn opens its log files."""
    os.makedirs(log_dir, exist_ok=True)
