# =============================================================================
# GUNICORN CONFIGURATION
# CleanCity Backend - Production WSGI Server
# =============================================================================

import multiprocessing
import os

# =============================================================================
# SERVER SOCKET
# =============================================================================

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# =============================================================================
# WORKER PROCESSES
# =============================================================================

# Recommended: (2 x num_cores) + 1
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))

# Analytics aggregation is CPU-bound; sync workers keep one request per process
worker_class = os.getenv("GUNICORN_WORKER_CLASS", "sync")

# Recycle workers periodically; each recycle also resets the local cache index
max_requests = 1000
max_requests_jitter = 100

# Must stay above ANALYTICS_QUERY_TIMEOUT_SECONDS so the app can answer 504 itself
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))

graceful_timeout = 30

keepalive = 5

# =============================================================================
# SECURITY
# =============================================================================

limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

# =============================================================================
# SERVER MECHANICS
# =============================================================================

# Container manages the process
daemon = False
pidfile = None
chdir = os.getenv("GUNICORN_CHDIR", "/app")

# =============================================================================
# LOGGING
# =============================================================================

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'
capture_output = True
enable_stdio_inheritance = True

# =============================================================================
# PROCESS NAMING
# =============================================================================

proc_name = "cleancity"

# =============================================================================
# SERVER HOOKS
# =============================================================================

def when_ready(server):
    """Called just after the server is started."""
    server.log.info(f"CleanCity backend ready with {workers} workers, timeout={timeout}s")


def worker_abort(worker):
    """Called when a worker receives SIGABRT (timeout)."""
    worker.log.warning(f"Worker {worker.pid} aborted; a request exceeded {timeout}s")
