"""
Celery settings for publishing mailer tasks.

This service only sends task messages; the mailer worker consumes them. See
`the celery docs
<http://docs.celeryproject.org/en/latest/userguide/configuration.html>`_.
"""

import os

REDIS_ENDPOINT = os.environ.get('REDIS_ENDPOINT', 'localhost:6379')
broker_url = "redis://%s/0" % REDIS_ENDPOINT
broker_transport_options = {
    'queue_name_prefix': 'useraccounts-',
}
task_ignore_result = True
"""No result backend; nothing waits for the mailer."""
