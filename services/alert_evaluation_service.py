"""
AlertEvaluationService - builds the alert feed and runs delivery passes.

A pass:
1. loads accounts, contacts and tasks
2. builds every triggered AlertCandidate for "today"
3. skips snoozed candidates and those the ledger has already seen
4. delivers the rest and stages a ledger record for each success
5. commits all staged records in one write

A store failure anywhere in the pass aborts it with nothing committed.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from logging_config import alert_audit_logger
from repositories.alert_settings_repository import AlertSettingsRepository
from repositories.entity_repository import EntityRepository
from repositories.relationship_owner_repository import RelationshipOwnerRepository
from services.alert_delivery_service import AlertDelivery, AlertNotification
from services.alert_snooze_service import AlertSnoozeService
from services.common.exceptions import DeliveryError, LedgerUnavailableError
from services.common.result import ErrorCode, Result
from services.entities import (
    Account,
    BannerBuyingOffice,
    Contact,
    CustomerEvent,
    RelationshipOwner,
    Task,
    optional_int,
    parse_alert_options,
)
from services.enums import AlertPriority, AlertType, ReminderFrequency, TaskStatus
from services.field_resolver import resolve
from services.notification_ledger_service import NotificationLedgerService, make_alert_id
from services.notification_routing import UNASSIGNED, OwnerDirectory
from services.temporal_evaluator import (
    DEFAULT_ALERT_DAYS,
    DateLike,
    days_until,
    is_triggered,
    is_within_lead_days,
    parse_event_date,
    triggered_options,
    upcoming_birthday,
)

logger = logging.getLogger(__name__)

LEAD_DAYS_TRIGGER = 'lead_days'
CLOSED_TASK_STATUSES = frozenset([TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value])
ESCALATING_TASK_PRIORITIES = frozenset([AlertPriority.CRITICAL.value, AlertPriority.HIGH.value])

_PRIORITY_RANK = {
    AlertPriority.LOW.value: 0,
    AlertPriority.MEDIUM.value: 1,
    AlertPriority.HIGH.value: 2,
    AlertPriority.CRITICAL.value: 3,
}


LEAD_DAY_KEYS = ('birthdayLeadDays', 'nextContactLeadDays', 'taskLeadDays')
SETTING_KEYS = LEAD_DAY_KEYS + ('reminderFrequency',)


@dataclass
class AlertSettings:
    """User-level alert preferences (crm-alert-settings) over configured defaults"""
    birthday_lead_days: int = DEFAULT_ALERT_DAYS
    next_contact_lead_days: int = DEFAULT_ALERT_DAYS
    task_lead_days: int = DEFAULT_ALERT_DAYS
    default_lead_days: int = DEFAULT_ALERT_DAYS
    reminder_frequency: ReminderFrequency = ReminderFrequency.ONCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: 'AlertSettings') -> 'AlertSettings':
        def lead(key: str, fallback: int) -> int:
            value = data.get(key)
            try:
                return int(value) if value not in (None, '') else fallback
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid alert setting {key}={value!r}")
                return fallback

        frequency = defaults.reminder_frequency
        raw_frequency = data.get('reminderFrequency')
        if raw_frequency:
            try:
                frequency = ReminderFrequency(raw_frequency)
            except ValueError:
                logger.warning(f"Unknown reminder frequency {raw_frequency!r}; using {frequency.value}")

        return cls(
            birthday_lead_days=lead('birthdayLeadDays', defaults.birthday_lead_days),
            next_contact_lead_days=lead('nextContactLeadDays', defaults.next_contact_lead_days),
            task_lead_days=lead('taskLeadDays', defaults.task_lead_days),
            default_lead_days=defaults.default_lead_days,
            reminder_frequency=frequency,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'birthdayLeadDays': self.birthday_lead_days,
            'nextContactLeadDays': self.next_contact_lead_days,
            'taskLeadDays': self.task_lead_days,
            'reminderFrequency': self.reminder_frequency.value,
        }


@dataclass
class AlertCandidate:
    """A triggered alert before the ledger and snooze checks"""
    alert_type: str
    entity_id: str
    due_date: date
    days_until: int
    title: str
    description: str
    priority: str
    triggered_by: List[str] = field(default_factory=list)
    contact_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    relationship_owner: str = UNASSIGNED
    relationship_owner_email: Optional[str] = None
    relationship_owner_teams_channel: Optional[str] = None
    vice_president: str = UNASSIGNED
    related_name: Optional[str] = None

    @property
    def alert_id(self) -> str:
        return make_alert_id(self.alert_type, self.entity_id, self.due_date)

    def to_notification(self, alert_id: Optional[str] = None) -> AlertNotification:
        return AlertNotification(
            alert_id=alert_id or self.alert_id,
            alert_type=self.alert_type,
            entity_id=self.entity_id,
            due_date=self.due_date.isoformat(),
            days_until=self.days_until,
            title=self.title,
            description=self.description,
            priority=self.priority,
            contact_id=self.contact_id,
            contact_name=self.contact_name,
            contact_email=self.contact_email,
            account_id=self.account_id,
            account_name=self.account_name,
            relationship_owner=self.relationship_owner,
            relationship_owner_email=self.relationship_owner_email,
            relationship_owner_teams_channel=self.relationship_owner_teams_channel,
            vice_president=self.vice_president,
            related_name=self.related_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['due_date'] = self.due_date.isoformat()
        data['alert_id'] = self.alert_id
        return data


@dataclass
class PassSummary:
    """Outcome of one evaluation pass"""
    today: str
    evaluated: int = 0
    delivered: int = 0
    already_sent: int = 0
    snoozed: int = 0
    failed: int = 0
    delivered_ids: List[str] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.already_sent + self.snoozed

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['skipped'] = self.skipped
        return data


def describe_offset(days: int) -> str:
    """0 -> 'today', 1 -> 'tomorrow', n -> 'in n days'"""
    if days == 0:
        return 'today'
    if days == 1:
        return 'tomorrow'
    return f'in {days} days'


def priority_for(days: int) -> str:
    if days <= 1:
        return AlertPriority.HIGH.value
    if days <= 7:
        return AlertPriority.MEDIUM.value
    return AlertPriority.LOW.value


def raise_priority(current: str, floor: Optional[str]) -> str:
    """The higher of two priorities; unknown values are ignored"""
    if floor not in _PRIORITY_RANK:
        return current
    return floor if _PRIORITY_RANK[floor] > _PRIORITY_RANK.get(current, 0) else current


def contact_owner(contact: Optional[Contact], account: Optional[Account]) -> str:
    """Primary Diageo owner -> legacy relationship owner -> account owner"""
    primary = (contact.get('primaryDiageoRelationshipOwners') or {}) if contact else {}
    legacy = (contact.get('relationshipOwner') or {}) if contact else {}
    return (
        primary.get('ownerName')
        or legacy.get('name')
        or (account.get('accountOwner') if account else None)
        or UNASSIGNED
    )


def vice_president(contact: Optional[Contact], account: Optional[Account]) -> str:
    """Owner SVP -> legacy relationship owner VP -> account VP"""
    primary = (contact.get('primaryDiageoRelationshipOwners') or {}) if contact else {}
    legacy = (contact.get('relationshipOwner') or {}) if contact else {}
    return (
        primary.get('svp')
        or legacy.get('vicePresident')
        or (account.get('vp') if account else None)
        or UNASSIGNED
    )


def repeat_alert_id(alert_id: str, days: int, frequency: ReminderFrequency) -> str:
    """
    Alert id for the current repeat window.

    ONCE returns the id unchanged. Other frequencies append the window index
    (days until the due date divided by the period) so a still-eligible alert
    gets one fresh id per window.
    """
    if frequency is ReminderFrequency.ONCE:
        return alert_id
    return f"{alert_id}:r{days // frequency.period_days}"


class AlertEvaluationService:
    """Generates alert candidates and runs delivery passes against the ledger"""

    def __init__(self,
                 entity_repository: EntityRepository,
                 ledger: NotificationLedgerService,
                 delivery: AlertDelivery,
                 snooze_service: Optional[AlertSnoozeService] = None,
                 settings_repository: Optional[AlertSettingsRepository] = None,
                 defaults: Optional[AlertSettings] = None,
                 owner_repository: Optional[RelationshipOwnerRepository] = None):
        self.entity_repository = entity_repository
        self.ledger = ledger
        self.delivery = delivery
        self.snooze_service = snooze_service
        self.settings_repository = settings_repository
        self.defaults = defaults or AlertSettings()
        self.owner_repository = owner_repository

    def get_settings(self) -> AlertSettings:
        if self.settings_repository is None:
            return self.defaults
        return AlertSettings.from_dict(self.settings_repository.get(), self.defaults)

    def update_settings(self, changes: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """
        Merge `changes` into the stored alert settings.

        Lead days must be non-negative integers and `reminderFrequency` one of
        the known frequencies; unknown keys are rejected.
        """
        if self.settings_repository is None:
            return Result.failure("Alert settings are not configurable", code=ErrorCode.VALIDATION_ERROR)

        unknown = sorted(set(changes) - set(SETTING_KEYS))
        if unknown:
            return Result.failure(f"Unknown alert settings: {', '.join(unknown)}",
                                  code=ErrorCode.VALIDATION_ERROR)
        for key in LEAD_DAY_KEYS:
            value = changes.get(key)
            if key in changes and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
                return Result.failure(f"{key} must be a non-negative integer",
                                      code=ErrorCode.VALIDATION_ERROR)
        if 'reminderFrequency' in changes:
            try:
                ReminderFrequency(changes['reminderFrequency'])
            except ValueError:
                return Result.failure(f"Unknown reminder frequency: {changes['reminderFrequency']!r}",
                                      code=ErrorCode.VALIDATION_ERROR)

        try:
            self.settings_repository.update(changes)
        except LedgerUnavailableError as e:
            logger.error(f"Failed to save alert settings: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        logger.info(f"Updated alert settings: {', '.join(sorted(changes))}")
        return Result.success(self.get_settings().to_dict())

    # Candidate generation

    def build_candidates(self,
                         today: DateLike,
                         accounts: Iterable[Account],
                         contacts: Iterable[Contact],
                         tasks: Iterable[Task] = (),
                         settings: Optional[AlertSettings] = None,
                         owners: Iterable[RelationshipOwner] = ()) -> List[AlertCandidate]:
        """
        Every alert that triggers on `today`. Pure with respect to its inputs.

        Items with unreadable dates are skipped. `owners` is the relationship-owner
        directory used to route notifications.
        """
        settings = settings or self.defaults
        directory = OwnerDirectory(owners)
        accounts = list(accounts)
        contacts = list(contacts)
        accounts_by_id = {a.id: a for a in accounts}
        contacts_by_id = {c.id: c for c in contacts}

        candidates: List[AlertCandidate] = []
        for contact in contacts:
            account = accounts_by_id.get(contact.account_id)
            candidates.extend(self._contact_candidates(contact, account, today, settings, directory))
        for account in accounts:
            candidates.extend(self._account_candidates(account, today, settings, directory))
        for task in tasks:
            candidate = self._task_candidate(task, accounts_by_id, contacts_by_id, today, settings,
                                             directory)
            if candidate:
                candidates.append(candidate)

        candidates.sort(key=lambda c: (c.days_until, c.alert_type, c.entity_id))
        return candidates

    def _contact_context(self, contact: Contact, account: Optional[Account],
                         directory: OwnerDirectory) -> Dict[str, Any]:
        owner = contact_owner(contact, account)
        route = directory.route(contact, owner)
        return {
            'contact_id': contact.id,
            'contact_name': contact.full_name,
            'contact_email': contact.email,
            'account_id': account.id if account else contact.account_id,
            'account_name': account.account_name if account else None,
            'relationship_owner': owner,
            'relationship_owner_email': route.email,
            'relationship_owner_teams_channel': route.teams_channel,
            'vice_president': vice_president(contact, account),
            'related_name': contact.full_name,
        }

    def _contact_candidates(self, contact: Contact, account: Optional[Account],
                            today: DateLike, settings: AlertSettings,
                            directory: OwnerDirectory) -> List[AlertCandidate]:
        candidates = []
        at_account = f" at {account.account_name}" if account and account.account_name else ''
        context = self._contact_context(contact, account, directory)

        if contact.birthday_alert and contact.birthday:
            occurrence = upcoming_birthday(contact.birthday, today)
            lead_days = contact.birthday_alert_days
            if lead_days is None:
                lead_days = settings.birthday_lead_days
            triggers = self._evaluate(occurrence, today, contact.birthday_alert_options, lead_days)
            if triggers is not None:
                days, matched = triggers
                candidates.append(AlertCandidate(
                    alert_type=AlertType.BIRTHDAY.value,
                    entity_id=contact.id,
                    due_date=occurrence,
                    days_until=days,
                    title=f"{contact.full_name}'s Birthday",
                    description=f"{contact.full_name}'s birthday is {describe_offset(days)}{at_account}",
                    priority=priority_for(days),
                    triggered_by=matched,
                    **context,
                ))

        if contact.next_contact_alert and contact.next_contact_date:
            due = parse_event_date(contact.next_contact_date)
            lead_days = contact.next_contact_alert_days
            if lead_days is None:
                lead_days = settings.next_contact_lead_days
            triggers = self._evaluate(due, today, contact.next_contact_alert_options, lead_days)
            if triggers is not None:
                days, matched = triggers
                candidates.append(AlertCandidate(
                    alert_type=AlertType.NEXT_CONTACT.value,
                    entity_id=contact.id,
                    due_date=due,
                    days_until=days,
                    title='Follow-up Due',
                    description=f"Follow up with {contact.full_name}{at_account} {describe_offset(days)}",
                    priority=priority_for(days),
                    triggered_by=matched,
                    **context,
                ))

        for event in contact.contact_events:
            candidate = self._event_candidate(
                event,
                AlertType.CONTACT_EVENT.value,
                f"{contact.id}:{event.id}",
                contact.full_name,
                today,
                context,
            )
            if candidate:
                candidates.append(candidate)

        return candidates

    def _account_context(self, account: Account, directory: OwnerDirectory) -> Dict[str, Any]:
        owner = account.get('accountOwner') or UNASSIGNED
        route = directory.route(None, owner)
        return {
            'account_id': account.id,
            'account_name': account.account_name,
            'relationship_owner': owner,
            'relationship_owner_email': route.email,
            'relationship_owner_teams_channel': route.teams_channel,
            'vice_president': account.get('vp') or UNASSIGNED,
            'related_name': account.account_name,
        }

    def _account_candidates(self, account: Account, today: DateLike,
                            settings: AlertSettings,
                            directory: OwnerDirectory) -> List[AlertCandidate]:
        candidates = []
        context = self._account_context(account, directory)

        jbp = self._jbp_candidate(account, None, today, settings, context)
        if jbp:
            candidates.append(jbp)

        for event in account.customer_events:
            candidate = self._event_candidate(
                event, AlertType.CUSTOMER_EVENT.value, f"{account.id}:{event.id}",
                account.account_name, today, context,
            )
            if candidate:
                candidates.append(candidate)

        for banner in account.banner_buying_offices:
            banner_context = dict(context, related_name=banner.name or account.account_name)
            if banner.get('nextJBPDate'):
                jbp = self._jbp_candidate(account, banner, today, settings, banner_context)
                if jbp:
                    candidates.append(jbp)
            for event in banner.customer_events:
                candidate = self._event_candidate(
                    event, AlertType.CUSTOMER_EVENT.value, f"{account.id}:{banner.id}:{event.id}",
                    banner.name or account.account_name, today, banner_context,
                )
                if candidate:
                    candidates.append(candidate)

        return candidates

    def _jbp_candidate(self, account: Account, banner: Optional[BannerBuyingOffice],
                       today: DateLike, settings: AlertSettings,
                       context: Dict[str, Any]) -> Optional[AlertCandidate]:
        if not resolve('nextJBPAlert', account, banner=banner):
            return None
        due = parse_event_date(resolve('nextJBPDate', account, banner=banner))
        if due is None:
            return None

        options = parse_alert_options(resolve('nextJBPAlertOptions', account, banner=banner))
        lead_days = optional_int(resolve('nextJBPAlertDays', account, banner=banner))
        if lead_days is None:
            lead_days = settings.default_lead_days

        triggers = self._evaluate(due, today, options, lead_days)
        if triggers is None:
            return None
        days, matched = triggers
        name = banner.name if banner and banner.name else account.account_name
        return AlertCandidate(
            alert_type=AlertType.JBP.value,
            entity_id=f"{account.id}:{banner.id}" if banner else account.id,
            due_date=due,
            days_until=days,
            title=f"JBP with {name}",
            description=f"Joint business plan with {name} is {describe_offset(days)}",
            priority=priority_for(days),
            triggered_by=matched,
            **context,
        )

    def _event_candidate(self, event: CustomerEvent, alert_type: str, entity_id: str,
                         owner_name: str, today: DateLike,
                         context: Dict[str, Any]) -> Optional[AlertCandidate]:
        if not event.alert_enabled:
            return None
        due = parse_event_date(event.date)
        days = days_until(due, today)
        if not is_triggered(days, event.alert_options, event.alert_enabled):
            return None
        title = event.title or 'Event'
        return AlertCandidate(
            alert_type=alert_type,
            entity_id=entity_id,
            due_date=due,
            days_until=days,
            title=title,
            description=f"{title} for {owner_name} is {describe_offset(days)}",
            priority=priority_for(days),
            triggered_by=sorted(o.value for o in triggered_options(days, event.alert_options)),
            **context,
        )

    def _task_candidate(self, task: Task, accounts_by_id: Dict[str, Account],
                        contacts_by_id: Dict[str, Contact], today: DateLike,
                        settings: AlertSettings,
                        directory: OwnerDirectory) -> Optional[AlertCandidate]:
        if not task.due_date_alert or task.status in CLOSED_TASK_STATUSES:
            return None
        due = parse_event_date(task.due_date)
        days = days_until(due, today)
        if not is_within_lead_days(days, settings.task_lead_days):
            return None

        related_contact = contacts_by_id.get(task.related_id) if task.related_type == 'contact' else None
        related_account = accounts_by_id.get(task.related_id) if task.related_type == 'account' else None
        if related_contact and not related_account:
            related_account = accounts_by_id.get(related_contact.account_id)

        if related_account and task.related_type == 'account':
            related_name = related_account.account_name
        elif related_contact:
            related_name = related_contact.full_name
        else:
            related_name = task.related_name or UNASSIGNED

        title = task.title or 'Untitled'
        escalation = task.priority if task.priority in ESCALATING_TASK_PRIORITIES else None
        owner = task.assigned_to or UNASSIGNED
        route = directory.route(related_contact, owner)
        return AlertCandidate(
            alert_type=AlertType.TASK_DUE.value,
            entity_id=task.id,
            due_date=due,
            days_until=days,
            title=f'Task Due: {title}',
            description=f'Task "{title}" is due {describe_offset(days)}',
            priority=raise_priority(priority_for(days), escalation),
            triggered_by=[LEAD_DAYS_TRIGGER],
            contact_id=related_contact.id if related_contact else None,
            contact_name=related_contact.full_name if related_contact else None,
            contact_email=related_contact.email if related_contact else None,
            account_id=related_account.id if related_account else None,
            account_name=related_account.account_name if related_account else None,
            relationship_owner=owner,
            relationship_owner_email=route.email,
            relationship_owner_teams_channel=route.teams_channel,
            vice_president=vice_president(related_contact, related_account),
            related_name=related_name,
        )

    @staticmethod
    def _evaluate(due: Optional[date], today: DateLike, options, lead_days: int):
        """
        (days, triggers) when `due` triggers, else None.

        Explicit alert options take precedence over the single lead-days threshold.
        """
        days = days_until(due, today)
        if days is None:
            return None
        if options:
            matched = triggered_options(days, options)
            if not matched:
                return None
            return days, sorted(o.value for o in matched)
        if not is_within_lead_days(days, lead_days):
            return None
        return days, [LEAD_DAYS_TRIGGER]

    # Feed and passes

    def _load_candidates(self, today: DateLike, settings: AlertSettings) -> List[AlertCandidate]:
        return self.build_candidates(
            today,
            self.entity_repository.get_accounts(),
            self.entity_repository.get_contacts(),
            self.entity_repository.get_tasks(),
            settings,
            self.owner_repository.get_all() if self.owner_repository else (),
        )

    def get_alert_feed(self, today: DateLike) -> Result[List[Dict[str, Any]]]:
        """Current candidates annotated with ledger and snooze state"""
        try:
            settings = self.get_settings()
            candidates = self._load_candidates(today, settings)
            snoozed = self.snooze_service.active_snoozes(today) if self.snooze_service else {}
            self.ledger.refresh()
            feed = []
            for candidate in candidates:
                item = candidate.to_dict()
                delivery_id = repeat_alert_id(candidate.alert_id, candidate.days_until,
                                              settings.reminder_frequency)
                item['delivery_id'] = delivery_id
                record = self.ledger.get_record(delivery_id)
                item['already_sent'] = record is not None
                item['sent_at'] = record.sent_at if record else None
                until = snoozed.get(candidate.alert_id)
                item['snoozed_until'] = until.isoformat() if until else None
                feed.append(item)
            return Result.success(feed)
        except LedgerUnavailableError as e:
            logger.error(f"Alert feed unavailable: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)

    def evaluate(self, today: DateLike) -> PassSummary:
        """
        Run one delivery pass.

        Raises:
            LedgerUnavailableError: If the store fails; no ledger write is committed
        """
        today_date = parse_event_date(today)
        if today_date is None:
            raise ValueError(f"Invalid evaluation date: {today!r}")

        settings = self.get_settings()
        candidates = self._load_candidates(today_date, settings)
        snoozed = self.snooze_service.active_snoozes(today_date) if self.snooze_service else {}
        summary = PassSummary(today=today_date.isoformat(), evaluated=len(candidates))

        with self.ledger.batch():
            for candidate in candidates:
                if candidate.alert_id in snoozed:
                    summary.snoozed += 1
                    continue

                delivery_id = repeat_alert_id(candidate.alert_id, candidate.days_until,
                                              settings.reminder_frequency)
                if not self.ledger.should_send(delivery_id):
                    summary.already_sent += 1
                    continue

                try:
                    delivered = self.delivery.deliver(candidate.to_notification(delivery_id))
                except DeliveryError as e:
                    alert_audit_logger.log_delivery_failed(delivery_id, candidate.alert_type, str(e))
                    summary.failed += 1
                    summary.failed_ids.append(delivery_id)
                    continue

                if not delivered:
                    alert_audit_logger.log_delivery_failed(delivery_id, candidate.alert_type)
                    summary.failed += 1
                    summary.failed_ids.append(delivery_id)
                    continue

                self.ledger.record(delivery_id, candidate.alert_type, candidate.contact_id,
                                   candidate.due_date)
                alert_audit_logger.log_delivered(delivery_id, candidate.alert_type,
                                                 candidate.entity_id, candidate.days_until)
                summary.delivered += 1
                summary.delivered_ids.append(delivery_id)

        alert_audit_logger.log_pass_summary(summary.evaluated, summary.delivered,
                                            summary.skipped, summary.failed)
        return summary

    def run_evaluation(self, today: DateLike) -> Result[Dict[str, Any]]:
        """`evaluate` for callers that expect a Result"""
        try:
            summary = self.evaluate(today)
        except LedgerUnavailableError as e:
            logger.error(f"Alert evaluation aborted: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        except ValueError as e:
            return Result.failure(str(e), code=ErrorCode.VALIDATION_ERROR)
        return Result.success(summary.to_dict())

    def prune_sent_alerts(self, retention_days: Optional[int] = None,
                          today: Optional[DateLike] = None) -> Result[int]:
        """
        Retention sweep over the ledger.

        Records for alerts due on `today` or later survive the sweep.
        """
        try:
            removed = self.ledger.prune(retention_days, today=today)
        except LedgerUnavailableError as e:
            logger.error(f"Sent-alert prune failed: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        except ValueError as e:
            return Result.failure(str(e), code=ErrorCode.VALIDATION_ERROR)
        return Result.success(removed)
