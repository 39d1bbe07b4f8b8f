"""
AlertSnoozeService - temporarily silence an alert id
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from repositories.alert_settings_repository import SnoozedAlertRepository
from services.temporal_evaluator import DateLike, parse_event_date

logger = logging.getLogger(__name__)


class AlertSnoozeService:
    """
    Snoozed alerts are skipped by the evaluation pass until `snoozeUntil`.

    An alert is snoozed while today < snoozeUntil. Expired entries are dropped
    whenever the list is read, and persisted away on the next write.
    """

    def __init__(self, snoozed_alert_repository: SnoozedAlertRepository):
        self.snoozed_alert_repository = snoozed_alert_repository

    def active_snoozes(self, today: DateLike) -> Dict[str, date]:
        """alertId -> snoozeUntil for entries still in effect"""
        today_date = parse_event_date(today)
        active = {}
        for entry in self.snoozed_alert_repository.get_all():
            until = parse_event_date(entry.get('snoozeUntil'))
            if until is None or today_date is None or until <= today_date:
                continue
            active[entry['alertId']] = until
        return active

    def snooze(self, alert_id: str, days: int, today: DateLike) -> date:
        """
        Snooze `alert_id` for `days` days from `today`.

        Returns:
            The date the alert becomes eligible again
        """
        if days < 1:
            raise ValueError("Snooze length must be at least one day")
        today_date = parse_event_date(today)
        if today_date is None:
            raise ValueError(f"Invalid date: {today!r}")

        until = today_date + timedelta(days=days)
        active = self.active_snoozes(today_date)
        active[alert_id] = until
        self._save(active)
        logger.info(f"Snoozed alert {alert_id} until {until.isoformat()}")
        return until

    def unsnooze(self, alert_id: str, today: DateLike) -> bool:
        active = self.active_snoozes(today)
        if alert_id not in active:
            return False
        del active[alert_id]
        self._save(active)
        return True

    def _save(self, active: Dict[str, date]) -> None:
        entries: List[Dict[str, Optional[str]]] = [
            {'alertId': alert_id, 'snoozeUntil': until.isoformat()}
            for alert_id, until in active.items()
        ]
        self.snoozed_alert_repository.replace_all(entries)
