import multiprocessing

# Gunicorn configuration for the TaskNest API (UvicornWorker per process)

bind = "0.0.0.0:8000"

# (2 x num_cores) + 1; only one of them runs the reminder scheduler
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 120
keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = "info"

name = "tasknest_api"
reload = False
