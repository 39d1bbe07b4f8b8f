"""
Repositories for user alert preferences and snoozed alerts
"""

import logging
from typing import Any, Dict, List

from repositories.document_store import DocumentStore

logger = logging.getLogger(__name__)

ALERT_SETTINGS_KEY = 'crm-alert-settings'
SNOOZED_ALERTS_KEY = 'crm-snoozed-alerts'


class AlertSettingsRepository:
    """The single alert-settings document"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self) -> Dict[str, Any]:
        settings = self.store.load(ALERT_SETTINGS_KEY, {})
        if not isinstance(settings, dict):
            logger.warning("Alert settings document is not an object; using defaults")
            return {}
        return settings

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        settings = self.get()
        settings.update(changes)
        self.store.save(ALERT_SETTINGS_KEY, settings)
        return settings


class SnoozedAlertRepository:
    """List of {alertId, snoozeUntil} entries"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def get_all(self) -> List[Dict[str, Any]]:
        entries = self.store.load(SNOOZED_ALERTS_KEY, [])
        if not isinstance(entries, list):
            return []
        return [e for e in entries if isinstance(e, dict) and e.get('alertId')]

    def replace_all(self, entries: List[Dict[str, Any]]) -> None:
        self.store.save(SNOOZED_ALERTS_KEY, entries)
