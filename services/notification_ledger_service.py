"""
NotificationLedgerService - remembers which alerts have already been delivered.

An alert id is derived from (alert type, entity id, due date) so the same
logical event on the same date is delivered once, while an edited due date or
next year's birthday produces a fresh id.

Writes made inside `batch()` are staged in memory and saved in one store write
when the block exits cleanly. If the block raises, nothing is written and the
staged records are discarded.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from repositories.sent_alert_repository import SentAlertRepository
from services.entities import SentAlertRecord
from services.temporal_evaluator import parse_event_date
from utils.datetime_utils import format_utc_iso, parse_utc_iso, utc_days_ago, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


def make_alert_id(alert_type: str, entity_id: str, due_date: Union[date, datetime, str]) -> str:
    """
    Deterministic alert id: "{alert_type}:{entity_id}:{YYYY-MM-DD}".

    Raises:
        ValueError: If `due_date` is not a recognizable date
    """
    due = parse_event_date(due_date)
    if due is None:
        raise ValueError(f"Cannot build alert id from due date {due_date!r}")
    alert_type = getattr(alert_type, 'value', alert_type)
    return f"{alert_type}:{entity_id}:{due.isoformat()}"


class NotificationLedgerService:
    """Append-only ledger of delivered alerts over a SentAlertRepository"""

    def __init__(self, sent_alert_repository: SentAlertRepository,
                 retention_days: int = DEFAULT_RETENTION_DAYS):
        self.sent_alert_repository = sent_alert_repository
        self.retention_days = retention_days
        self._records: Optional[List[SentAlertRecord]] = None
        self._index: Dict[str, SentAlertRecord] = {}
        self._staged: List[SentAlertRecord] = []
        self._batch_depth = 0

    def _ensure_loaded(self) -> None:
        if self._records is None:
            self._records = self.sent_alert_repository.get_all()
            self._index = {record.alert_id: record for record in self._records}

    def _invalidate(self) -> None:
        self._records = None
        self._index = {}
        self._staged = []

    def should_send(self, alert_id: str) -> bool:
        """True iff no record with this id exists (staged records count)"""
        self._ensure_loaded()
        return alert_id not in self._index

    def get_record(self, alert_id: str) -> Optional[SentAlertRecord]:
        self._ensure_loaded()
        return self._index.get(alert_id)

    def record(self,
               alert_id: str,
               alert_type: str,
               contact_id: Optional[str],
               due_date: Union[date, datetime, str],
               sent_at: Optional[datetime] = None) -> bool:
        """
        Append a ledger entry if `alert_id` has not been recorded yet.

        Outside of `batch()` the entry is written immediately.

        Returns:
            True if an entry was appended, False if it already existed
        """
        if not self.should_send(alert_id):
            logger.debug(f"Alert {alert_id} already recorded")
            return False

        due = parse_event_date(due_date)
        record = SentAlertRecord(
            alert_id=alert_id,
            alert_type=getattr(alert_type, 'value', alert_type),
            contact_id=contact_id,
            sent_at=format_utc_iso(sent_at or utc_now()),
            due_date=due.isoformat() if due else str(due_date),
        )
        self._records.append(record)
        self._index[alert_id] = record
        self._staged.append(record)

        if self._batch_depth == 0:
            self.commit()
        return True

    def commit(self) -> int:
        """Write staged records in a single save; returns how many were written"""
        if not self._staged:
            return 0
        staged = len(self._staged)
        try:
            self.sent_alert_repository.replace_all(list(self._records))
        except Exception:
            self._invalidate()
            raise
        self._staged = []
        logger.info(f"Committed {staged} sent-alert record(s)")
        return staged

    def refresh(self) -> None:
        """Re-read the ledger on next access. Not allowed while records are staged."""
        if self._staged:
            raise RuntimeError("Cannot refresh the ledger with uncommitted records")
        self._invalidate()

    def rollback(self) -> int:
        """Discard staged records; the next read reloads from the store"""
        discarded = len(self._staged)
        self._invalidate()
        if discarded:
            logger.warning(f"Discarded {discarded} staged sent-alert record(s)")
        return discarded

    @property
    def pending_count(self) -> int:
        return len(self._staged)

    @contextmanager
    def batch(self):
        """
        Stage every `record` in the block and commit once on exit.

        The ledger is reloaded at the start of the outermost batch so a pass
        sees records written by earlier passes.
        """
        if self._batch_depth == 0:
            self._invalidate()
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self.rollback()
            raise
        self._batch_depth -= 1
        if self._batch_depth == 0:
            self.commit()

    def prune(self,
              retention_days: Optional[int] = None,
              now: Optional[datetime] = None,
              today: Optional[Union[date, datetime, str]] = None) -> int:
        """
        Remove records whose sentAt is older than now - retention_days.

        A record whose due date is `today` or later is kept regardless of its
        sentAt, since the alert can still trigger. Records with an unreadable
        sentAt are removed once their due date has passed.

        Args:
            retention_days: Days to keep (default: the ledger's retention)
            now: Reference time for the sentAt cutoff
            today: Calendar date due dates are compared against (default: date of `now`)

        Returns:
            Number of records removed

        Raises:
            ValueError: If retention_days is negative
        """
        if self._batch_depth:
            raise RuntimeError("Cannot prune the ledger while a batch is open")

        days = self.retention_days if retention_days is None else retention_days
        if days < 0:
            raise ValueError(f"Retention must be zero or more days, got {days}")

        now = now or utc_now()
        cutoff = utc_days_ago(days, now)
        today_date = parse_event_date(today) if today is not None else now.date()
        if today_date is None:
            raise ValueError(f"Invalid date for prune: {today!r}")

        self._invalidate()
        records = self.sent_alert_repository.get_all()
        kept = [record for record in records if self._should_keep(record, cutoff, today_date)]
        removed = len(records) - len(kept)

        if removed:
            self.sent_alert_repository.replace_all(kept)
            logger.info(f"Pruned {removed} sent-alert record(s) older than {days} days")
        return removed

    @staticmethod
    def _should_keep(record: SentAlertRecord, cutoff: datetime, today: date) -> bool:
        due = parse_event_date(record.due_date)
        if due is not None and due >= today:
            return True
        try:
            return parse_utc_iso(record.sent_at) > cutoff
        except ValueError:
            return False
