"""
Domain entities parsed from the stored JSON documents.

Documents use camelCase keys. Only the fields the engine reasons about are
lifted into typed attributes; the full document is kept in `attributes` so
the Field Resolver and Row Flattener can read any business attribute by its
document name.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from services.enums import AlertOption


def parse_alert_options(values: Optional[Iterable[Any]]) -> FrozenSet[AlertOption]:
    """Normalize a stored alert-option list into a set, dropping unknown values"""
    if not values or isinstance(values, str):
        return frozenset()
    options = set()
    for value in values:
        try:
            options.add(AlertOption(value))
        except ValueError:
            continue
    return frozenset(options)


def optional_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _nested_documents(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Object entries of a nested list; null and scalar entries are dropped"""
    values = data.get(key)
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, dict)]


@dataclass(frozen=True)
class CustomerEvent:
    """A dated event of interest attached to an account, banner or contact"""
    id: str
    title: str
    date: Optional[str]
    alert_enabled: bool = False
    alert_options: FrozenSet[AlertOption] = frozenset()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CustomerEvent':
        return cls(
            id=str(data.get('id', '')),
            title=data.get('title') or '',
            date=_text(data.get('date')),
            alert_enabled=bool(data.get('alertEnabled')),
            alert_options=parse_alert_options(data.get('alertOptions')),
        )


@dataclass
class BannerBuyingOffice:
    """Retail banner nested inside exactly one account"""
    id: str
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    customer_events: List[CustomerEvent] = field(default_factory=list)

    def get(self, attribute: str) -> Any:
        return self.attributes.get(attribute)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BannerBuyingOffice':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('accountName') or '',
            attributes=dict(data),
            customer_events=[CustomerEvent.from_dict(e) for e in _nested_documents(data, 'customerEvents')],
        )


@dataclass
class Account:
    id: str
    account_name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    banner_buying_offices: List[BannerBuyingOffice] = field(default_factory=list)
    customer_events: List[CustomerEvent] = field(default_factory=list)

    def get(self, attribute: str) -> Any:
        return self.attributes.get(attribute)

    def find_banner(self, banner_id: Optional[str]) -> Optional[BannerBuyingOffice]:
        """Banner with this id inside this account, or None"""
        if not banner_id:
            return None
        for banner in self.banner_buying_offices:
            if banner.id == banner_id:
                return banner
        return None

    @property
    def next_jbp_date(self) -> Optional[str]:
        return _text(self.attributes.get('nextJBPDate'))

    @property
    def next_jbp_alert(self) -> bool:
        return bool(self.attributes.get('nextJBPAlert'))

    @property
    def next_jbp_alert_options(self) -> FrozenSet[AlertOption]:
        return parse_alert_options(self.attributes.get('nextJBPAlertOptions'))

    @property
    def next_jbp_alert_days(self) -> Optional[int]:
        return optional_int(self.attributes.get('nextJBPAlertDays'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=str(data.get('id', '')),
            account_name=data.get('accountName') or '',
            attributes=dict(data),
            banner_buying_offices=[
                BannerBuyingOffice.from_dict(b) for b in _nested_documents(data, 'bannerBuyingOffices')
            ],
            customer_events=[CustomerEvent.from_dict(e) for e in _nested_documents(data, 'customerEvents')],
        )


@dataclass
class Contact:
    id: str
    first_name: str
    last_name: str
    account_id: Optional[str] = None
    banner_buying_office_id: Optional[str] = None
    manager_id: Optional[str] = None
    is_primary_contact: bool = False
    email: Optional[str] = None
    birthday: Optional[str] = None
    birthday_alert: bool = False
    birthday_alert_options: FrozenSet[AlertOption] = frozenset()
    birthday_alert_days: Optional[int] = None
    next_contact_date: Optional[str] = None
    next_contact_alert: bool = False
    next_contact_alert_options: FrozenSet[AlertOption] = frozenset()
    next_contact_alert_days: Optional[int] = None
    last_contact_date: Optional[str] = None
    contact_events: List[CustomerEvent] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def get(self, attribute: str) -> Any:
        return self.attributes.get(attribute)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Contact':
        return cls(
            id=str(data.get('id', '')),
            first_name=data.get('firstName') or '',
            last_name=data.get('lastName') or '',
            account_id=_text(data.get('accountId')) or None,
            banner_buying_office_id=_text(data.get('bannerBuyingOfficeId')) or None,
            manager_id=_text(data.get('managerId')) or None,
            is_primary_contact=bool(data.get('isPrimaryContact')),
            email=data.get('email'),
            birthday=_text(data.get('birthday')) or None,
            birthday_alert=bool(data.get('birthdayAlert')),
            birthday_alert_options=parse_alert_options(data.get('birthdayAlertOptions')),
            birthday_alert_days=optional_int(data.get('birthdayAlertDays')),
            next_contact_date=_text(data.get('nextContactDate')) or None,
            next_contact_alert=bool(data.get('nextContactAlert')),
            next_contact_alert_options=parse_alert_options(data.get('nextContactAlertOptions')),
            next_contact_alert_days=optional_int(data.get('nextContactAlertDays')),
            last_contact_date=_text(data.get('lastContactDate')) or None,
            contact_events=[CustomerEvent.from_dict(e) for e in _nested_documents(data, 'contactEvents')],
            attributes=dict(data),
        )


@dataclass
class Task:
    id: str
    title: str
    due_date: Optional[str]
    status: str = 'pending'
    priority: str = 'medium'
    due_date_alert: bool = False
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    related_name: Optional[str] = None
    assigned_to: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        return cls(
            id=str(data.get('id', '')),
            title=data.get('title') or '',
            due_date=_text(data.get('dueDate')) or None,
            status=data.get('status') or 'pending',
            priority=data.get('priority') or 'medium',
            due_date_alert=bool(data.get('dueDateAlert')),
            related_id=_text(data.get('relatedId')) or None,
            related_type=data.get('relatedType'),
            related_name=data.get('relatedName'),
            assigned_to=data.get('assignedTo'),
        )


@dataclass(frozen=True)
class RelationshipOwner:
    """Entry in the relationship-owner directory"""
    name: str
    email: Optional[str] = None
    teams_channel_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RelationshipOwner':
        return cls(
            name=(_text(data.get('name')) or '').strip(),
            email=_text(data.get('email')) or None,
            teams_channel_id=_text(data.get('teamsChannelId') or data.get('teamsChatId')) or None,
        )


@dataclass(frozen=True)
class SentAlertRecord:
    """One delivered alert. Never mutated once written."""
    alert_id: str
    alert_type: str
    contact_id: Optional[str]
    sent_at: str
    due_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alertId': self.alert_id,
            'alertType': self.alert_type,
            'contactId': self.contact_id,
            'sentAt': self.sent_at,
            'dueDate': self.due_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SentAlertRecord':
        return cls(
            alert_id=data['alertId'],
            alert_type=data.get('alertType') or '',
            contact_id=data.get('contactId'),
            sent_at=data.get('sentAt') or '',
            due_date=data.get('dueDate') or '',
        )
