from snti.config import settings

# Server socket
bind = f"{settings.HOST}:{settings.PORT}"
backlog = 2048

# Worker processes
workers = settings.WORKERS
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
# Uploads of up to MAX_FILE_SIZE stream through a single request
timeout = 60
graceful_timeout = 30
keepalive = 2
# Recycle workers periodically
max_requests = 2000
max_requests_jitter = 200

# Logging: the application writes its own files under LOG_DIR
accesslog = "-"
errorlog = "-"
loglevel = settings.LOG_LEVEL.lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

proc_name = "snti_api"
