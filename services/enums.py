"""
Service layer enums
Values match the strings stored in the JSON documents
"""

from enum import Enum


class AlertOption(str, Enum):
    """Lead-time trigger windows an event can subscribe to"""
    SAME_DAY = 'same_day'
    DAY_BEFORE = 'day_before'
    WEEK_BEFORE = 'week_before'


class AlertType(str, Enum):
    """Kinds of alert the evaluation pass produces"""
    BIRTHDAY = 'birthday'
    NEXT_CONTACT = 'next-contact'
    CONTACT_EVENT = 'contact-event'
    CUSTOMER_EVENT = 'customer-event'
    JBP = 'jbp'
    TASK_DUE = 'task-due'


class AlertPriority(str, Enum):
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class TaskStatus(str, Enum):
    PENDING = 'pending'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    OVERDUE = 'overdue'
    CANCELLED = 'cancelled'


class RelatedType(str, Enum):
    """What a task's relatedId points at"""
    ACCOUNT = 'account'
    CONTACT = 'contact'


class ReminderFrequency(str, Enum):
    """How often a still-eligible alert is re-delivered"""
    ONCE = 'once'
    DAILY = 'daily'
    EVERY_3_DAYS = 'every-3-days'
    WEEKLY = 'weekly'

    @property
    def period_days(self) -> int:
        """Length of one repeat window in days (0 for ONCE)"""
        return {
            ReminderFrequency.ONCE: 0,
            ReminderFrequency.DAILY: 1,
            ReminderFrequency.EVERY_3_DAYS: 3,
            ReminderFrequency.WEEKLY: 7,
        }[self]


class DataQualityKind(str, Enum):
    """Reference inconsistencies surfaced to the reporting layer"""
    MISSING_ACCOUNT = 'contact_missing_account'
    FOREIGN_BANNER = 'contact_banner_not_in_account'
    MISSING_MANAGER = 'contact_missing_manager'
    MANAGER_CYCLE = 'contact_manager_cycle'
    MISSING_TASK_TARGET = 'task_missing_related_entity'
