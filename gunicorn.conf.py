"""
Gunicorn Configuration for Production

Run with: gunicorn main:app -c gunicorn.conf.py

The per-user correction quota is held in process memory, so every worker
enforces it independently: with N workers a user can land up to
N x CORRECTIONS_RATE_LIMIT batches per window. Keep GUNICORN_WORKERS low
(or 1) when the quota matters.
"""

import multiprocessing
import os

# =============================================================================
# Server Socket
# =============================================================================

bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# =============================================================================
# Worker Processes
# =============================================================================

workers = int(os.getenv("GUNICORN_WORKERS", min(2 * multiprocessing.cpu_count() + 1, 4)))

# Use Uvicorn worker for async support
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 30
graceful_timeout = 30
keepalive = 5

# Max requests per worker before restart; a restart also clears that
# worker's correction quotas
max_requests = 1000
max_requests_jitter = 100

# =============================================================================
# Logging
# =============================================================================

accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = os.getenv("LOG_LEVEL", "info")

access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# =============================================================================
# Process Naming
# =============================================================================

proc_name = "voice-personalization-api"

# =============================================================================
# Server Mechanics
# =============================================================================

daemon = False
pidfile = None
user = None
group = None
tmp_upload_dir = None
