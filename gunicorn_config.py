"""Gunicorn configuration for the ARC-19 CID API.

    gunicorn -c gunicorn_config.py cid_api:app
"""

import multiprocessing
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "sync"  # CPU-bound codec work, no I/O to overlap
timeout = 30

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info")

proc_name = "arc19_cid_api"

# Recycle workers so the per-process lru_cache does not grow unchecked
max_requests = 10000
max_requests_jitter = 1000
preload_app = True
