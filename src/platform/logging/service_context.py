"""
Service identification for log lines.

Every record carries `<service>@<env>:<instance>` so logs from several
API workers and the hold sweeper can be told apart.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'yard-parking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Containers get a short hostname, local runs fall back to the PID
    instance = os.getenv('HOSTNAME') or socket.gethostname()
    if not instance or deploy_env == 'local_dev':
        instance = str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance[:12]}'
