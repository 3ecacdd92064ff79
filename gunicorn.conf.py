"""
Production Server Configuration

Run the reporting API with Uvicorn workers under Gunicorn. Each worker loads
its own copy of the sales snapshot at startup.
"""

import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("WORKERS", 2))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
timeout = 120
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "coffee-analytics-api"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'
