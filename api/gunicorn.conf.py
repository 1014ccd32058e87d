"""
Gunicorn configuration for production deployment.

Usage:
    gunicorn -c api/gunicorn.conf.py api.wsgi:app

Or with Docker:
    CMD ["gunicorn", "-c", "api/gunicorn.conf.py", "api.wsgi:app"]
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8080")
backlog = 2048

# Worker processes
# Thread-per-request; each worker owns its own DB pool and store
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 30
keepalive = 5

# Graceful restart
graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "tokenauth-api"

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190
