import logging

import requests
from django.conf import settings

from .serializers import ChangeEventSerializer

logger = logging.getLogger(__name__)


def deliver(event):
    """
    POSTs a change event to the configured webhook.
    Delivery problems are logged; they never reach the caller.
    """
    url = getattr(settings, 'CHANGE_WEBHOOK_URL', '')
    if not url:
        return False

    headers = {"Content-Type": "application/json"}
    secret = getattr(settings, 'CHANGE_WEBHOOK_SECRET', '')
    if secret:
        headers["X-Webhook-Secret"] = secret

    try:
        resp = requests.post(
            url,
            json=ChangeEventSerializer(event).data,
            headers=headers,
            timeout=getattr(settings, 'CHANGE_WEBHOOK_TIMEOUT', 10),
        )
        resp.raise_for_status()
        return True

    except requests.exceptions.Timeout:
        logger.warning("Change webhook timed out for event %s", event.pk)

    except requests.exceptions.ConnectionError:
        logger.warning("Could not connect to change webhook for event %s", event.pk)

    except requests.exceptions.RequestException as e:
        logger.error(f"Change webhook delivery failed for event {event.pk}: {e}")

    return False
