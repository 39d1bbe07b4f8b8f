"""
Alert delivery collaborators.

The evaluation pass hands each eligible alert to a delivery object and records
it in the ledger only when delivery reports success.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from services.common.exceptions import DeliveryError
from services.notification_routing import is_valid_email
from utils.datetime_utils import format_utc_iso

logger = logging.getLogger(__name__)


@dataclass
class AlertNotification:
    """What the engine knows about one alert at delivery time"""
    alert_id: str
    alert_type: str
    entity_id: str
    due_date: str
    days_until: int
    title: str
    description: str
    priority: str
    contact_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    relationship_owner: str = 'Unassigned'
    relationship_owner_email: Optional[str] = None
    relationship_owner_teams_channel: Optional[str] = None
    vice_president: str = 'Unassigned'
    related_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Webhook body in the flow-trigger format (camelCase keys)"""
        return {
            'alertType': self.alert_type,
            'entityId': self.entity_id,
            'title': self.title,
            'contactName': self.contact_name or self.related_name or self.title,
            'contactEmail': self.contact_email,
            'accountName': self.account_name,
            'dueDate': self.due_date,
            'daysUntil': self.days_until,
            'priority': self.priority,
            'relationshipOwner': self.relationship_owner,
            'relationshipOwnerEmail': self.relationship_owner_email,
            'relationshipOwnerTeamsChannel': self.relationship_owner_teams_channel or '',
            'vicePresident': self.vice_president,
            'description': self.description,
            'additionalData': {
                'alertId': self.alert_id,
                'contactId': self.contact_id,
                'accountId': self.account_id,
                'autoSent': True,
                **self.extra,
            },
        }


class AlertDelivery(ABC):
    """Hands an alert off to whoever acts on it"""

    @abstractmethod
    def deliver(self, notification: AlertNotification) -> bool:
        """
        Returns:
            True once the alert has been accepted

        Raises:
            DeliveryError: If the alert could not be handed off at all
        """
        pass


class LoggingAlertDelivery(AlertDelivery):
    """Writes alerts to the log and keeps them in memory"""

    def __init__(self):
        self.delivered: List[AlertNotification] = []

    def deliver(self, notification: AlertNotification) -> bool:
        logger.info(
            f"Alert {notification.alert_id}: {notification.title} "
            f"({notification.description}, priority {notification.priority})"
        )
        self.delivered.append(notification)
        return True


class WebhookAlertDelivery(AlertDelivery):
    """
    POSTs alerts as JSON to a flow-trigger URL.

    Alerts without a valid recipient address are not sent and count as
    failed deliveries.
    """

    def __init__(self, webhook_url: str, timeout: int = 30,
                 type_urls: Optional[Dict[str, str]] = None):
        """
        Args:
            webhook_url: Default trigger URL
            timeout: Request timeout in seconds
            type_urls: Optional per-alert-type URL overrides
        """
        if not webhook_url and not type_urls:
            raise ValueError("Alert webhook URL not configured")
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.type_urls = type_urls or {}

    def url_for(self, alert_type: str) -> Optional[str]:
        return self.type_urls.get(alert_type) or self.webhook_url

    def deliver(self, notification: AlertNotification) -> bool:
        url = self.url_for(notification.alert_type)
        if not url:
            logger.warning(f"No webhook URL configured for {notification.alert_type} alerts")
            return False

        if not notification.relationship_owner_email:
            logger.warning(
                f"No notification email for relationship owner "
                f"{notification.relationship_owner!r}; alert {notification.alert_id} not sent"
            )
            return False
        if not is_valid_email(notification.relationship_owner_email):
            logger.warning(
                f"Invalid notification email {notification.relationship_owner_email!r}; "
                f"alert {notification.alert_id} not sent"
            )
            return False

        payload = notification.to_payload()
        payload['timestamp'] = format_utc_iso()

        try:
            response = requests.post(
                url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Webhook request failed for alert {notification.alert_id}", extra={
                "error": str(e),
                "alert_type": notification.alert_type,
            })
            raise DeliveryError(f"Webhook request failed: {str(e)}") from e

        if not response.ok:
            logger.error(f"Webhook rejected alert {notification.alert_id}", extra={
                "status_code": response.status_code,
                "response": response.text[:500],
            })
            return False

        logger.debug(f"Webhook accepted alert {notification.alert_id}")
        return True
