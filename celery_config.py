"""
Shared Celery configuration for both Flask app and Celery workers
"""
import logging
import os
import ssl
from urllib.parse import parse_qs, urlparse

from celery import Celery

logger = logging.getLogger(__name__)

# Alert tasks share one queue; run it with a single worker process
# (celery -A celery_worker.celery worker -Q alerts -c 1) so passes never overlap.
ALERT_QUEUE = 'alerts'

_INSECURE_SSL = {
    'ssl_cert_reqs': ssl.CERT_NONE,
    'ssl_ca_certs': None,
    'ssl_certfile': None,
    'ssl_keyfile': None,
}


def _with_ssl_params(url):
    """Append ssl_cert_reqs to rediss:// URLs that do not set it"""
    if not url.startswith('rediss://'):
        return url
    parsed = urlparse(url)
    if 'ssl_cert_reqs' in parse_qs(parsed.query):
        return url
    separator = '&' if parsed.query else '?'
    return url + f"{separator}ssl_cert_reqs=CERT_NONE"


def create_celery_app(app_name=__name__, broker_url=None, result_backend=None):
    """Create a Celery app, enabling SSL options when Redis is reached over rediss://"""
    broker_url = broker_url or os.environ.get('CELERY_BROKER_URL') or \
        os.environ.get('REDIS_URL') or 'redis://redis:6379/0'
    result_backend = result_backend or os.environ.get('CELERY_RESULT_BACKEND') or broker_url

    broker_uses_ssl = broker_url.startswith('rediss://')
    backend_uses_ssl = result_backend.startswith('rediss://')

    options = {}
    if broker_uses_ssl or backend_uses_ssl:
        options.update(
            broker_use_ssl=_INSECURE_SSL if broker_uses_ssl else None,
            redis_backend_use_ssl=_INSECURE_SSL if backend_uses_ssl else None,
            broker_connection_retry_on_startup=True,
            broker_connection_retry=True,
            broker_connection_max_retries=3,
            broker_transport_options={
                'socket_connect_timeout': 30,
                'socket_timeout': 30,
            },
        )

    celery = Celery(
        app_name,
        broker=_with_ssl_params(broker_url),
        backend=_with_ssl_params(result_backend),
        **options
    )
    celery.conf.task_routes = {'tasks.alert_tasks.*': {'queue': ALERT_QUEUE}}
    celery.conf.worker_prefetch_multiplier = 1

    logger.info(
        f"Celery configured (broker ssl={broker_uses_ssl}, backend ssl={backend_uses_ssl})"
    )
    return celery
