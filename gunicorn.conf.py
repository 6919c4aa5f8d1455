"""Gunicorn configuration for SharkScope production deployment."""

# Server socket
bind = '127.0.0.1:5000'

# Worker processes
# Capture sessions live in process memory: every request must reach the
# same worker, so scale with threads, not workers.
workers = 1
worker_class = 'gthread'
threads = 4

# Timeout
timeout = 120

# Logging
accesslog = '-'
errorlog = '-'
loglevel = 'info'
